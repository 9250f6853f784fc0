"""C# Script Preprocessor - Flattens scripts and their #load graph.

Public API:
    preprocess_script_file: Main entry point for programmatic use
    PreprocessOptions: Configuration options for preprocessing
    PreprocessOutcome: Result container with the flattened code and report
    PreprocessError: Exception raised when preprocessing fails
    FilePreprocessor: The preprocessor itself, for custom line sources
    LineSource: Base class for line sources

Example:
    >>> from api import preprocess_script_file
    >>> from pathlib import Path
    >>>
    >>> outcome = preprocess_script_file(Path("main.csx"))
    >>> print(outcome.code)             # Flattened script
    >>> print(outcome.result.imports)   # Hoisted using imports
"""

__version__ = "0.1.0"
