"""JSON output for script preprocessing reports.

Reports are plain dictionaries built by `create_preprocess_report`.
`JSONWriter` turns them into JSON text, either indented or on one line,
and can leave out the per-line mapping, which grows with the output.
"""

import json
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

from preprocessor.file_preprocessor import PreprocessResult
from .load_graph import summarize_load_graph


def _encode_value(obj: Any) -> Any:
    # Callers may pass paths in source_info and LineKind members in mappings
    if isinstance(obj, Path):
        return str(obj)
    if isinstance(obj, Enum):
        return obj.value
    raise TypeError(f"Object of type {type(obj).__name__} is not allowed in a report")


class JSONWriter:
    """Writes preprocessing reports as JSON.

    Keys are always sorted so reports of the same run compare equal.
    """

    def __init__(
        self,
        pretty_print: bool = True,
        indent: int = 2,
        compact: bool = False,
        include_line_mapping: bool = True,
    ):
        """Initialize the JSON writer.

        Args:
            pretty_print: Whether to format JSON with indentation
            indent: Number of spaces for indentation
            compact: Single line without spaces after separators
            include_line_mapping: Whether to keep the line_mapping section
        """
        self.indent = indent if pretty_print and not compact else None
        self.separators = (",", ":") if compact else None
        self.include_line_mapping = include_line_mapping

    def dumps(self, report: Dict[str, Any]) -> str:
        """Serialize a report dictionary."""
        if not self.include_line_mapping and "line_mapping" in report:
            report = {key: value for key, value in report.items() if key != "line_mapping"}

        return json.dumps(
            report,
            indent=self.indent,
            separators=self.separators,
            sort_keys=True,
            ensure_ascii=False,
            default=_encode_value,
        )

    def write(self, report: Dict[str, Any], output_path: Optional[Path] = None) -> str:
        """Serialize a report and optionally save it.

        Args:
            report: Report dictionary
            output_path: File to write (UTF-8); nothing is written if None

        Returns:
            JSON string
        """
        json_str = self.dumps(report)
        if output_path:
            output_path.write_text(json_str, encoding="utf-8")
        return json_str

    def write_result(
        self,
        result: PreprocessResult,
        output_path: Optional[Path] = None,
        execution_time_seconds: Optional[float] = None,
        source_info: Optional[Dict[str, Any]] = None,
    ) -> str:
        """Build the report for a preprocessing result and write it."""
        report = create_preprocess_report(
            result,
            execution_time_seconds=execution_time_seconds,
            source_info=source_info,
            include_line_mapping=self.include_line_mapping,
        )
        return self.write(report, output_path)


def create_preprocess_report(
    result: PreprocessResult,
    execution_time_seconds: Optional[float] = None,
    source_info: Optional[Dict[str, Any]] = None,
    include_line_mapping: bool = True,
) -> Dict[str, Any]:
    """Create a report dictionary from a preprocessing result.

    Args:
        result: Result of FilePreprocessor.process_file_result
        execution_time_seconds: Optional timing to include
        source_info: Optional entry file metadata
        include_line_mapping: Whether to include the output line mapping

    Returns:
        Report dictionary
    """
    report: Dict[str, Any] = {
        "entry": result.entry,
        "report_date": datetime.now().isoformat(),
        "references": list(result.references),
        "imports": list(result.imports),
        "loaded_files": list(result.loaded_files),
        "skipped_loads": [
            {
                "source_file": skipped.source_file,
                "target": skipped.target,
                "line_number": skipped.line_number,
            }
            for skipped in result.skipped_loads
        ],
        "load_graph": summarize_load_graph(result),
        "summary": {
            "files_loaded": len(result.loaded_files),
            "references": len(result.references),
            "imports": len(result.imports),
            "body_lines": len(result.body),
            "output_lines": len(result.lines),
        },
    }

    if execution_time_seconds is not None:
        report["execution_time_seconds"] = execution_time_seconds

    if source_info:
        report["source_info"] = source_info

    if include_line_mapping:
        report["line_mapping"] = {
            str(line_number): {
                "original_line": mapping.original_line,
                "source_file": mapping.source_file,
                "kind": mapping.kind.value,
            }
            for line_number, mapping in result.line_mapping.items()
        }

    return report


def write_preprocess_report(
    result: PreprocessResult,
    output_path: Path,
    pretty_print: bool = True,
) -> None:
    """Convenience function to write a preprocessing report to file.

    Args:
        result: Result of FilePreprocessor.process_file_result
        output_path: Path to write the report
        pretty_print: Whether to format with indentation
    """
    JSONWriter(pretty_print=pretty_print).write_result(result, output_path)
