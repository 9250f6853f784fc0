"""Directive recognition for C# script files.

A script file may start with a header made of three kinds of directive
lines, interleaved with blank lines:
- Load directives: #load "other.csx"
- Reference directives: #r "Some.Assembly.dll"
- Import statements: using System.Collections.Generic;

This module classifies individual lines. It knows nothing about files or
traversal; see file_preprocessor for that.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class LineKind(Enum):
    """Classification of a single script line."""

    LOAD = "load"
    REFERENCE = "reference"
    IMPORT = "import"
    BLANK = "blank"
    CODE = "code"


class ScanMode(Enum):
    """Scanner state for one file.

    HEADER is left for good once the first code line is seen.
    """

    HEADER = "header"
    BODY = "body"


# #load "path" with an optional trailing semicolon
LOAD_PATTERN = re.compile(r'^\s*#load\s+"([^"]+)"\s*;?\s*$')

# #r "assembly" with an optional trailing semicolon
REFERENCE_PATTERN = re.compile(r'^\s*#r\s+"([^"]+)"\s*;?\s*$')

IMPORT_KEYWORD = "using "


@dataclass
class ClassifiedLine:
    """A script line together with its classification."""

    kind: LineKind
    text: str
    target: Optional[str] = None  # load path or reference name


def is_import_line(line: str) -> bool:
    """Check whether a line has the shape of an import statement.

    `using (var s = new MemoryStream()) {` does not end with a semicolon
    and is therefore code.
    """
    return line.lstrip().startswith(IMPORT_KEYWORD) and line.rstrip().endswith(";")


def parse_load_target(line: str) -> Optional[str]:
    """Return the path of a #load directive, or None."""
    match = LOAD_PATTERN.match(line)
    return match.group(1) if match else None


def parse_reference_target(line: str) -> Optional[str]:
    """Return the assembly of a #r directive, or None."""
    match = REFERENCE_PATTERN.match(line)
    return match.group(1) if match else None


def classify_line(line: str, mode: ScanMode = ScanMode.HEADER) -> ClassifiedLine:
    """Classify a script line according to the current scan mode.

    In BODY mode only blank lines are distinguished from code; directive
    shaped lines are ordinary text there.

    Args:
        line: Raw line text, without terminator
        mode: Scanner state of the file the line belongs to

    Returns:
        ClassifiedLine holding the original text
    """
    if not line.strip():
        return ClassifiedLine(LineKind.BLANK, line)

    if mode is ScanMode.BODY:
        return ClassifiedLine(LineKind.CODE, line)

    target = parse_load_target(line)
    if target is not None:
        return ClassifiedLine(LineKind.LOAD, line, target)

    target = parse_reference_target(line)
    if target is not None:
        return ClassifiedLine(LineKind.REFERENCE, line, target)

    if is_import_line(line):
        return ClassifiedLine(LineKind.IMPORT, line)

    return ClassifiedLine(LineKind.CODE, line)


def next_mode(mode: ScanMode, kind: LineKind) -> ScanMode:
    """Compute the scanner state after a line of the given kind."""
    if kind is LineKind.CODE:
        return ScanMode.BODY
    return mode
