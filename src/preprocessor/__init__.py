"""Preprocessor module for flattening C# scripts and their #load graph."""

from .directives import LineKind, ScanMode, classify_line
from .file_preprocessor import FilePreprocessor, LineMapping, LoadEdge, PreprocessResult, SkippedLoad
from .line_source import (
    FileSystemLineSource,
    InMemoryLineSource,
    LineSource,
    SourceNotFoundError,
    SourceReadError,
    SourceUnavailableError,
    split_lines,
)

__all__ = [
    "FilePreprocessor",
    "PreprocessResult",
    "LineMapping",
    "LoadEdge",
    "SkippedLoad",
    "LineKind",
    "ScanMode",
    "classify_line",
    "LineSource",
    "FileSystemLineSource",
    "InMemoryLineSource",
    "SourceUnavailableError",
    "SourceNotFoundError",
    "SourceReadError",
    "split_lines",
]
