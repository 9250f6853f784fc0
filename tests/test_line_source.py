"""Tests for line sources."""

import os
import pytest
from pathlib import Path

from preprocessor.line_source import (
    FileSystemLineSource,
    InMemoryLineSource,
    SourceNotFoundError,
    SourceReadError,
    SourceUnavailableError,
    split_lines,
)


class TestFileSystemLineSource:
    """Tests for reading scripts from disk."""

    @pytest.fixture
    def script_dir(self, tmp_path):
        """Directory with a script and a shared library directory."""
        (tmp_path / "main.csx").write_text('#load "util.csx"\nrun();\n', encoding="utf-8")
        shared = tmp_path / "shared"
        shared.mkdir()
        (shared / "util.csx").write_text("int Util() => 1;\r\n", encoding="utf-8")
        (shared / "noext.csx").write_text("noext();", encoding="utf-8")
        return tmp_path

    def test_read_from_search_path(self, script_dir):
        """Test that relative paths are resolved against search paths."""
        source = FileSystemLineSource([script_dir, script_dir / "shared"])

        assert source.read_lines("main.csx") == ['#load "util.csx"', "run();"]
        assert source.read_lines("util.csx") == ["int Util() => 1;"]

    def test_search_path_order(self, script_dir):
        """Test that the first search path containing the file wins."""
        (script_dir / "util.csx").write_text("local();", encoding="utf-8")
        source = FileSystemLineSource([script_dir, script_dir / "shared"])

        assert source.read_lines("util.csx") == ["local();"]

    def test_extension_fallback(self, script_dir):
        """Test that .csx is appended when the bare name does not exist."""
        source = FileSystemLineSource([script_dir / "shared"])

        assert source.read_lines("noext") == ["noext();"]

    def test_absolute_path(self, script_dir):
        """Test that absolute paths are read directly."""
        source = FileSystemLineSource([Path("/nonexistent")])

        assert source.read_lines(str(script_dir / "main.csx"))[1] == "run();"

    def test_not_found(self, script_dir):
        """Test error when a script cannot be found."""
        source = FileSystemLineSource([script_dir])

        with pytest.raises(SourceNotFoundError) as exc_info:
            source.read_lines("missing.csx")

        error = exc_info.value
        assert isinstance(error, SourceUnavailableError)
        assert error.path == "missing.csx"
        assert script_dir / "missing.csx" in error.searched_paths
        assert script_dir / "missing.csx.csx" in error.searched_paths

    def test_absolute_path_not_found(self, tmp_path):
        """Test that missing absolute paths are not searched elsewhere."""
        source = FileSystemLineSource([tmp_path])
        missing = tmp_path / "gone.csx"

        with pytest.raises(SourceNotFoundError) as exc_info:
            source.read_lines(str(missing))
        assert exc_info.value.searched_paths == [missing]

    def test_read_error(self, script_dir, monkeypatch):
        """Test that OS errors are reported as SourceReadError."""
        def fail(*args, **kwargs):
            raise PermissionError("denied")

        monkeypatch.setattr(Path, "read_text", fail)
        source = FileSystemLineSource([script_dir])

        with pytest.raises(SourceReadError) as exc_info:
            source.read_lines("main.csx")
        assert "denied" in str(exc_info.value)
        assert isinstance(exc_info.value.__cause__, PermissionError)

    def test_invalid_bytes_are_replaced(self, tmp_path):
        """Test that undecodable bytes do not fail the read."""
        (tmp_path / "bad.csx").write_bytes(b"var s = \"\xff\";\n")
        source = FileSystemLineSource([tmp_path])

        assert source.read_lines("bad.csx") == ['var s = "\ufffd";']

    def test_default_line_terminator(self):
        """Test that the platform newline is used by default."""
        assert FileSystemLineSource().line_terminator == os.linesep
        assert FileSystemLineSource(line_terminator="\r\n").line_terminator == "\r\n"

    def test_add_search_path(self, script_dir):
        """Test adding a search path."""
        source = FileSystemLineSource([script_dir])
        source.add_search_path(script_dir / "shared")
        source.add_search_path(script_dir / "shared")

        assert source.search_paths == [script_dir, script_dir / "shared"]
        assert source.read_lines("util.csx") == ["int Util() => 1;"]

    def test_add_search_path_leaves_caller_list_alone(self, script_dir):
        """Test that the search path list given by the caller is copied."""
        search_paths = [script_dir]
        source = FileSystemLineSource(search_paths)

        source.add_search_path(script_dir / "shared")

        assert search_paths == [script_dir]
        assert source.search_paths == [script_dir, script_dir / "shared"]

    def test_form_feed_stays_in_line(self, tmp_path):
        """Test that a form feed does not split a line."""
        (tmp_path / "ff.csx").write_text("x();\x0cy();\n", encoding="utf-8")
        source = FileSystemLineSource([tmp_path])

        assert source.read_lines("ff.csx") == ["x();\x0cy();"]


class TestInMemoryLineSource:
    """Tests for the dictionary-backed line source."""

    def test_string_and_list_content(self):
        """Test that both strings and line lists are accepted."""
        source = InMemoryLineSource({"a.csx": "one\ntwo", "b.csx": ["three"]})

        assert source.read_lines("a.csx") == ["one", "two"]
        assert source.read_lines("b.csx") == ["three"]
        assert source.line_terminator == "\n"

    def test_reads_are_recorded(self):
        """Test that every read is recorded, including failed ones."""
        source = InMemoryLineSource({"a.csx": "x"})
        source.read_lines("a.csx")
        source.read_lines("a.csx")
        with pytest.raises(SourceNotFoundError):
            source.read_lines("b.csx")

        assert source.reads == ["a.csx", "a.csx", "b.csx"]
        assert source.read_count("a.csx") == 2

    def test_add_file(self):
        """Test adding files after construction."""
        source = InMemoryLineSource(line_terminator="\r\n")
        source.add_file("late.csx", ["late();"])

        assert source.read_lines("late.csx") == ["late();"]
        assert source.line_terminator == "\r\n"

    def test_unicode_separators_stay_in_line(self):
        """Test that only CR and LF end lines of string content."""
        source = InMemoryLineSource({"a.csx": "a(); b();\x85c();\r\nd();\re();\n"})

        assert source.read_lines("a.csx") == ["a(); b();\x85c();", "d();", "e();"]


class TestSplitLines:
    """Tests for splitting script text into lines."""

    def test_terminators(self):
        """Test CR LF, CR and LF terminators."""
        assert split_lines("a\r\nb\rc\nd") == ["a", "b", "c", "d"]

    def test_trailing_terminator(self):
        """Test that a final terminator adds no empty line."""
        assert split_lines("a\n") == ["a"]
        assert split_lines("a\n\n") == ["a", ""]
        assert split_lines("\r\n") == [""]

    def test_empty_text(self):
        """Test that empty text has no lines."""
        assert split_lines("") == []

    def test_other_separators_are_kept(self):
        """Test that separators other than CR and LF are line content."""
        assert split_lines("a\x0cb\x1cc\x1dd\x1ee f") == ["a\x0cb\x1cc\x1dd\x1ee f"]
