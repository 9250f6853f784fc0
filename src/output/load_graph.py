"""Load graph analysis for preprocessed scripts.

Builds a directed graph of #load relationships from a PreprocessResult.
Edges to files that were already loaded are kept, so load cycles that the
preprocessor silently cut short show up here.
"""

from typing import Any, Dict, List

import networkx as nx  # type: ignore[import-untyped]

from preprocessor.file_preprocessor import PreprocessResult


def build_load_graph(result: PreprocessResult) -> "nx.DiGraph":
    """Build the #load graph of a preprocessing run.

    Args:
        result: Result of FilePreprocessor.process_file_result

    Returns:
        Directed graph; edge attribute `line_number` is the directive line
    """
    graph = nx.DiGraph()

    for path in result.loaded_files:
        graph.add_node(path, loaded=True)

    for edge in result.load_edges:
        if edge.target not in graph:
            graph.add_node(edge.target, loaded=False)
        graph.add_edge(edge.source_file, edge.target, line_number=edge.line_number)

    return graph


def find_load_cycles(graph: "nx.DiGraph") -> List[List[str]]:
    """Find elementary load cycles.

    Each cycle is rotated to start at its smallest node so the output is
    stable across runs.

    Args:
        graph: Graph from build_load_graph

    Returns:
        Sorted list of cycles
    """
    cycles = []
    for cycle in nx.simple_cycles(graph):
        start = cycle.index(min(cycle))
        cycles.append(cycle[start:] + cycle[:start])
    return sorted(cycles)


def max_load_depth(graph: "nx.DiGraph", entry: str) -> int:
    """Length of the longest shortest-path from the entry to any file."""
    if entry not in graph:
        return 0
    lengths = nx.single_source_shortest_path_length(graph, entry)
    return max(lengths.values()) if lengths else 0


def summarize_load_graph(result: PreprocessResult) -> Dict[str, Any]:
    """Summarize the load graph of a preprocessing run.

    Args:
        result: Result of FilePreprocessor.process_file_result

    Returns:
        Dictionary with entry, files, edges, cycles and max_depth
    """
    graph = build_load_graph(result)

    return {
        "entry": result.entry,
        "files": list(result.loaded_files),
        "edges": [
            {
                "from": edge.source_file,
                "to": edge.target,
                "line_number": edge.line_number,
            }
            for edge in result.load_edges
        ],
        "cycles": find_load_cycles(graph),
        "max_depth": max_load_depth(graph, result.entry),
    }
