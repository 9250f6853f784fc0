"""Script file preprocessor.

Flattens a C# script and everything it loads into one script body:
- #load directives are followed depth first, pre-order, using an explicit
  stack so long load chains do not exhaust the recursion limit
- Every file is loaded at most once, so load cycles terminate
- #r reference lines are hoisted to the top, then using imports, then code
- Duplicate references and imports are dropped (exact text match)
- Directives appearing after the first code line of a file are left
  alone as ordinary code
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple

from .directives import LineKind, ScanMode, classify_line, next_mode, parse_load_target
from .line_source import LineSource, split_lines


logger = logging.getLogger(__name__)


@dataclass
class LineMapping:
    """Maps an output line number to its original source location."""

    output_line: int
    original_line: int
    source_file: str
    kind: LineKind = LineKind.CODE


@dataclass
class LoadEdge:
    """A #load directive that was followed."""

    source_file: str
    target: str
    line_number: int


@dataclass
class SkippedLoad:
    """A #load directive ignored because code had already started."""

    source_file: str
    target: str
    line_number: int


@dataclass
class _SourceLine:
    text: str
    source_file: str
    line_number: int
    kind: LineKind


@dataclass
class PreprocessResult:
    """Outcome of preprocessing one entry script.

    Attributes:
        entry: Entry path as given by the caller
        references: Distinct #r lines in discovery order
        imports: Distinct using lines in discovery order
        body: Remaining lines in traversal order
        loaded_files: Every file read, in load order (entry first)
        load_edges: Every followed #load, including ones to visited files
        skipped_loads: #load lines kept as code because they came after code
        line_terminator: Terminator used to join the output
        line_mapping: Output line number (1-based) -> original location
    """

    entry: str
    references: List[str] = field(default_factory=list)
    imports: List[str] = field(default_factory=list)
    body: List[str] = field(default_factory=list)
    loaded_files: List[str] = field(default_factory=list)
    load_edges: List[LoadEdge] = field(default_factory=list)
    skipped_loads: List[SkippedLoad] = field(default_factory=list)
    line_terminator: str = "\n"
    line_mapping: Dict[int, LineMapping] = field(default_factory=dict)

    @property
    def lines(self) -> List[str]:
        """Output lines: references, then imports, then body."""
        return self.references + self.imports + self.body

    @property
    def code(self) -> str:
        """The flattened script."""
        return self.line_terminator.join(self.lines)

    def get_original_line(self, output_line: int) -> Tuple[int, str]:
        """Get the original location of an output line.

        Args:
            output_line: 1-based line number in the flattened script

        Returns:
            Tuple of (original_line_number, source_file)

        Raises:
            KeyError: If the line is outside the output
        """
        mapping = self.line_mapping[output_line]
        return (mapping.original_line, mapping.source_file)


@dataclass
class _Frame:
    """Scan position within one file."""

    path: str
    lines: List[str]
    index: int = 0
    mode: ScanMode = ScanMode.HEADER


class _Traversal:
    """Mutable state of a single preprocessing call.

    Files are walked with an explicit stack of frames, so the depth of a
    #load chain is not bounded by the interpreter's recursion limit. When
    a #load is followed, the loaded file's frame goes on top of the stack
    and the loading file resumes at the next line once it is exhausted.
    """

    def __init__(self, line_source: LineSource, entry: str):
        self.line_source = line_source
        self.entry = entry
        self.visited: Set[str] = set()
        self.loaded_files: List[str] = []
        self.references: List[_SourceLine] = []
        self.imports: List[_SourceLine] = []
        self.body: List[_SourceLine] = []
        self._seen_references: Set[str] = set()
        self._seen_imports: Set[str] = set()
        self.load_edges: List[LoadEdge] = []
        self.skipped_loads: List[SkippedLoad] = []

    def load(self, path: str) -> None:
        """Read a file and everything it loads."""
        frame = self._open(path)
        if frame is not None:
            self._walk([frame])

    def scan(self, path: str, lines: List[str]) -> None:
        """Walk lines that were already read, following their loads."""
        self._walk([_Frame(path, lines)])

    def _open(self, path: str) -> Optional[_Frame]:
        if path in self.visited:
            logger.debug(f"Skipping {path}: already loaded")
            return None
        self.visited.add(path)

        lines = self.line_source.read_lines(path)
        self.loaded_files.append(path)
        logger.debug(f"Loaded {path} ({len(lines)} lines)")
        return _Frame(path, lines)

    def _walk(self, stack: List[_Frame]) -> None:
        while stack:
            frame = stack[-1]
            if frame.index >= len(frame.lines):
                stack.pop()
                continue

            line = frame.lines[frame.index]
            frame.index += 1
            line_number = frame.index

            mode = frame.mode
            classified = classify_line(line, mode)
            kind = classified.kind
            frame.mode = next_mode(mode, kind)

            if kind is LineKind.LOAD:
                self.load_edges.append(LoadEdge(frame.path, classified.target, line_number))
                loaded = self._open(classified.target)
                if loaded is not None:
                    stack.append(loaded)
                continue

            source_line = _SourceLine(line, frame.path, line_number, kind)
            if kind is LineKind.REFERENCE:
                if line not in self._seen_references:
                    self._seen_references.add(line)
                    self.references.append(source_line)
            elif kind is LineKind.IMPORT:
                if line not in self._seen_imports:
                    self._seen_imports.add(line)
                    self.imports.append(source_line)
            else:
                if mode is ScanMode.BODY and kind is LineKind.CODE:
                    self._note_inert_load(frame.path, line, line_number)
                self.body.append(source_line)

    def _note_inert_load(self, path: str, line: str, line_number: int) -> None:
        target = parse_load_target(line)
        if target is None:
            return
        logger.debug(
            f"Ignoring #load \"{target}\" at {path}:{line_number}: code already started"
        )
        self.skipped_loads.append(SkippedLoad(path, target, line_number))

    def result(self, line_terminator: str) -> PreprocessResult:
        ordered = self.references + self.imports + self.body
        line_mapping = {
            index: LineMapping(
                output_line=index,
                original_line=source_line.line_number,
                source_file=source_line.source_file,
                kind=source_line.kind,
            )
            for index, source_line in enumerate(ordered, 1)
        }

        return PreprocessResult(
            entry=self.entry,
            references=[line.text for line in self.references],
            imports=[line.text for line in self.imports],
            body=[line.text for line in self.body],
            loaded_files=list(self.loaded_files),
            load_edges=list(self.load_edges),
            skipped_loads=list(self.skipped_loads),
            line_terminator=line_terminator,
            line_mapping=line_mapping,
        )


class FilePreprocessor:
    """Flattens script files through a LineSource.

    The preprocessor keeps no state between calls.
    """

    DEFAULT_SCRIPT_NAME = "<script>"

    def __init__(self, line_source: LineSource):
        """Initialize the preprocessor.

        Args:
            line_source: Source of file lines and of the output terminator
        """
        self.line_source = line_source

    def process_file(self, path: str) -> str:
        """Flatten a script file and everything it loads.

        Args:
            path: Entry path understood by the line source

        Returns:
            Flattened script text

        Raises:
            SourceUnavailableError: If the line source cannot read a file
        """
        return self.process_file_result(path).code

    def process_file_result(self, path: str) -> PreprocessResult:
        """Flatten a script file and return the structured result.

        Args:
            path: Entry path understood by the line source

        Returns:
            PreprocessResult for the entry script
        """
        line_terminator = self.line_source.line_terminator
        traversal = _Traversal(self.line_source, path)
        traversal.load(path)
        return traversal.result(line_terminator)

    def process_script(self, code: str, name: Optional[str] = None) -> PreprocessResult:
        """Flatten in-memory script text.

        The text is treated as an entry file called `name`; its #load
        directives are read through the line source.

        Args:
            code: Script text
            name: Identifier of the script (used for cycle detection)

        Returns:
            PreprocessResult for the script
        """
        name = name or self.DEFAULT_SCRIPT_NAME
        line_terminator = self.line_source.line_terminator
        traversal = _Traversal(self.line_source, name)
        traversal.visited.add(name)
        traversal.loaded_files.append(name)
        traversal.scan(name, split_lines(code))
        return traversal.result(line_terminator)
