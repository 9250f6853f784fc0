"""Output module for preprocessing reports."""

from .json_writer import JSONWriter, create_preprocess_report, write_preprocess_report
from .load_graph import build_load_graph, find_load_cycles, summarize_load_graph

__all__ = [
    "JSONWriter",
    "create_preprocess_report",
    "write_preprocess_report",
    "build_load_graph",
    "find_load_cycles",
    "summarize_load_graph",
]
