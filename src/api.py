"""Public API for C# script preprocessing.

This module provides the programmatic interface for flattening scripts.
Use these functions instead of calling CLI internals directly.

Example:
    from api import preprocess_script_file, PreprocessOptions

    outcome = preprocess_script_file(
        source_path=Path("main.csx"),
        options=PreprocessOptions(
            search_paths=[Path("./shared")],
        ),
    )

    print(outcome.code)          # Flattened script
    print(outcome.to_dict())     # Report (same as `csx-preprocess report`)
"""

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from preprocessor import FilePreprocessor, FileSystemLineSource, PreprocessResult, SourceUnavailableError
from output import create_preprocess_report


logger = logging.getLogger(__name__)

LINE_TERMINATORS = {
    "native": None,
    "lf": "\n",
    "crlf": "\r\n",
}


class PreprocessError(Exception):
    """Raised when script preprocessing fails unexpectedly."""
    pass


@dataclass
class PreprocessOptions:
    """Options for script preprocessing.

    Attributes:
        search_paths: Directories searched for #load targets (after the entry directory)
        extensions: Extensions tried for #load targets (default: "" then ".csx")
        encoding: Encoding of script files
        line_terminator: Output terminator; None uses the platform newline
    """
    search_paths: Optional[List[Path]] = None
    extensions: Optional[List[str]] = None
    encoding: str = "utf-8"
    line_terminator: Optional[str] = None


@dataclass
class PreprocessOutcome:
    """Result of preprocessing a script file.

    Attributes:
        entry: Path of the entry script
        result: Structured preprocessing result
        execution_time_seconds: Time spent preprocessing
    """
    entry: Path
    result: PreprocessResult
    execution_time_seconds: float

    @property
    def code(self) -> str:
        """The flattened script."""
        return self.result.code

    @property
    def source_info(self) -> Dict[str, Any]:
        return {
            "file_path": str(self.entry.absolute()),
            "file_name": self.entry.name,
            "files_loaded": len(self.result.loaded_files),
        }

    def to_dict(self, include_line_mapping: bool = True) -> Dict[str, Any]:
        """Build the JSON report for this outcome."""
        return create_preprocess_report(
            self.result,
            execution_time_seconds=self.execution_time_seconds,
            source_info=self.source_info,
            include_line_mapping=include_line_mapping,
        )


def resolve_line_terminator(name: Optional[str]) -> Optional[str]:
    """Translate a configured terminator name (native, lf, crlf).

    Raises:
        ValueError: For unknown names
    """
    if name is None:
        return None
    key = name.lower()
    if key not in LINE_TERMINATORS:
        raise ValueError(
            f"Unknown line terminator '{name}', expected one of: {', '.join(LINE_TERMINATORS)}"
        )
    return LINE_TERMINATORS[key]


def create_line_source(source_path: Path, options: PreprocessOptions) -> FileSystemLineSource:
    """Build the filesystem line source used for an entry script.

    The entry script's directory is searched first.
    """
    search_paths = [source_path.parent] + list(options.search_paths or [])
    return FileSystemLineSource(
        search_paths=search_paths,
        extensions=options.extensions,
        encoding=options.encoding,
        line_terminator=options.line_terminator,
    )


def preprocess_script_file(
    source_path: Path,
    options: Optional[PreprocessOptions] = None,
) -> PreprocessOutcome:
    """Flatten a script file and everything it loads.

    Args:
        source_path: Path to the entry script
        options: Preprocessing options (uses defaults if not provided)

    Returns:
        PreprocessOutcome with the flattened code and its structured result

    Raises:
        FileNotFoundError: If the entry script doesn't exist
        SourceUnavailableError: If a loaded script cannot be read
        PreprocessError: If preprocessing fails for other reasons

    Example:
        >>> outcome = preprocess_script_file(Path("main.csx"))
        >>> print(outcome.result.references)
        >>> print(outcome.code)
    """
    if options is None:
        options = PreprocessOptions()

    if not source_path.exists():
        raise FileNotFoundError(f"Source file not found: {source_path}")

    if not source_path.is_file():
        raise FileNotFoundError(f"Source path is not a file: {source_path}")

    start_time = time.perf_counter()

    try:
        line_source = create_line_source(source_path, options)
        preprocessor = FilePreprocessor(line_source)
        # The entry is loaded by name so #load directives pointing back at it match
        result = preprocessor.process_file_result(source_path.name)
    except SourceUnavailableError:
        raise
    except Exception as e:
        raise PreprocessError(f"Preprocessing failed: {e}") from e

    execution_time = time.perf_counter() - start_time
    logger.info(
        f"Preprocessed {source_path}: {len(result.loaded_files)} file(s), "
        f"{len(result.lines)} line(s)"
    )

    return PreprocessOutcome(
        entry=source_path,
        result=result,
        execution_time_seconds=round(execution_time, 4),
    )
