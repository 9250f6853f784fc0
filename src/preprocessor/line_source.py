"""Line sources feeding the script preprocessor.

A line source turns a file identifier into the list of its lines and
tells the preprocessor which terminator to use when joining output.
The preprocessor never touches the filesystem itself.
"""

import logging
import os
import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional


logger = logging.getLogger(__name__)

LINE_BREAK_PATTERN = re.compile(r"\r\n|\r|\n")


def split_lines(text: str) -> List[str]:
    """Split text into lines on CR LF, CR and LF only.

    Form feeds and Unicode line separators stay inside their line. A
    terminator at the end of the text does not produce an extra line.
    """
    if not text:
        return []
    lines = LINE_BREAK_PATTERN.split(text)
    if lines[-1] == "":
        lines.pop()
    return lines


class SourceUnavailableError(Exception):
    """A line source cannot produce lines for a path."""

    def __init__(self, path: str, message: Optional[str] = None):
        self.path = path
        super().__init__(message or f"Script source '{path}' is unavailable")


class SourceNotFoundError(SourceUnavailableError):
    """Script file not found."""

    def __init__(self, path: str, searched_paths: List[Path]):
        self.searched_paths = searched_paths
        paths_str = ", ".join(str(p) for p in searched_paths)
        super().__init__(path, f"Script '{path}' not found. Searched: {paths_str}")


class SourceReadError(SourceUnavailableError):
    """Script file exists but could not be read."""

    def __init__(self, path: str, reason: str):
        self.reason = reason
        super().__init__(path, f"Failed to read script '{path}': {reason}")


class LineSource(ABC):
    """Source of script lines, keyed by path string."""

    @abstractmethod
    def read_lines(self, path: str) -> List[str]:
        """Return the lines of a file, in order and without terminators.

        Raises:
            SourceUnavailableError: If the path cannot be resolved or read
        """

    @property
    @abstractmethod
    def line_terminator(self) -> str:
        """Terminator used to join preprocessed output."""


class FileSystemLineSource(LineSource):
    """Reads script files from disk."""

    DEFAULT_EXTENSIONS = ["", ".csx"]

    def __init__(
        self,
        search_paths: Optional[List[Path]] = None,
        extensions: Optional[List[str]] = None,
        encoding: str = "utf-8",
        line_terminator: Optional[str] = None,
    ):
        """Initialize the line source.

        Args:
            search_paths: Directories that relative paths are resolved against
            extensions: Extensions tried in order for each candidate
            encoding: Text encoding of script files
            line_terminator: Output terminator (defaults to os.linesep)
        """
        self.search_paths = list(search_paths) if search_paths else [Path(".")]
        self.extensions = extensions if extensions is not None else self.DEFAULT_EXTENSIONS
        self.encoding = encoding
        self._line_terminator = line_terminator or os.linesep

    @property
    def line_terminator(self) -> str:
        return self._line_terminator

    def resolve(self, path: str) -> Path:
        """Find the file a path refers to.

        Args:
            path: Path as written by the caller or in a #load directive

        Returns:
            Existing file path

        Raises:
            SourceNotFoundError: If no candidate exists
        """
        searched_paths: List[Path] = []

        direct = Path(path)
        if direct.is_absolute():
            searched_paths.append(direct)
            if direct.is_file():
                return direct
            raise SourceNotFoundError(path, searched_paths)

        for base_path in self.search_paths:
            for ext in self.extensions:
                candidate = base_path / f"{path}{ext}"
                if candidate in searched_paths:
                    continue
                searched_paths.append(candidate)
                if candidate.is_file():
                    return candidate

        # Last resort: relative to the working directory
        if direct not in searched_paths:
            searched_paths.append(direct)
            if direct.is_file():
                return direct

        raise SourceNotFoundError(path, searched_paths)

    def read_lines(self, path: str) -> List[str]:
        file_path = self.resolve(path)
        logger.debug(f"Reading {path} from {file_path}")
        try:
            content = file_path.read_text(encoding=self.encoding, errors="replace")
        except OSError as e:
            raise SourceReadError(path, str(e)) from e
        return split_lines(content)

    def add_search_path(self, path: Path):
        """Add a directory to resolve relative paths against.

        Args:
            path: Directory path to add
        """
        if path not in self.search_paths:
            self.search_paths.append(path)


class InMemoryLineSource(LineSource):
    """Serves scripts from a dictionary of path -> content.

    Content may be given as a string or as a list of lines. Every read is
    recorded in `reads`.
    """

    def __init__(self, files: Optional[Dict[str, object]] = None, line_terminator: str = "\n"):
        self.files: Dict[str, object] = dict(files or {})
        self.reads: List[str] = []
        self._line_terminator = line_terminator

    @property
    def line_terminator(self) -> str:
        return self._line_terminator

    def add_file(self, path: str, content) -> None:
        self.files[path] = content

    def read_lines(self, path: str) -> List[str]:
        self.reads.append(path)
        if path not in self.files:
            raise SourceNotFoundError(path, [Path(path)])
        content = self.files[path]
        if isinstance(content, str):
            return split_lines(content)
        return list(content)

    def read_count(self, path: str) -> int:
        """Number of times a path has been read."""
        return self.reads.count(path)
