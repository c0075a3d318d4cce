"""Unit tests for layout discovery."""

from pathlib import Path

import pytest

from jinjaview.layouts import find_layout, normalize_view_roots


class TestNormalizeViewRoots:
    """Tests for normalize_view_roots."""

    def test_single_string(self) -> None:
        """Test a single directory string."""
        assert normalize_view_roots("views") == [Path("views")]

    def test_single_path(self, tmp_path: Path) -> None:
        """Test a single Path object."""
        assert normalize_view_roots(tmp_path) == [tmp_path]

    def test_list_keeps_order(self) -> None:
        """Test that a list of roots keeps its order."""
        assert normalize_view_roots(["b", "a"]) == [Path("b"), Path("a")]

    @pytest.mark.parametrize("views", [None, "", []])
    def test_unset(self, views) -> None:
        """Test that missing view settings yield no roots."""
        assert normalize_view_roots(views) == []


class TestFindLayout:
    """Tests for find_layout."""

    def test_appends_caller_extension(self, tmp_path: Path) -> None:
        """Test that an extensionless name borrows the caller's extension."""
        (tmp_path / "layout.hbs").write_text("hbs")
        (tmp_path / "layout.html").write_text("html")

        assert find_layout("layout", str(tmp_path), ".hbs") == tmp_path / "layout.hbs"
        assert find_layout("layout", str(tmp_path), ".html") == tmp_path / "layout.html"

    def test_explicit_extension_kept(self, tmp_path: Path) -> None:
        """Test that a name with an extension is used as-is."""
        (tmp_path / "base.html").write_text("html")

        assert find_layout("base.html", str(tmp_path), ".hbs") == tmp_path / "base.html"

    def test_first_root_wins(self, tmp_path: Path) -> None:
        """Test that roots are searched in order."""
        first = tmp_path / "first"
        second = tmp_path / "second"
        first.mkdir()
        second.mkdir()
        (first / "layout.html").write_text("first")
        (second / "layout.html").write_text("second")

        assert find_layout("layout", [str(first), str(second)], ".html") == first / "layout.html"

    def test_falls_through_to_later_root(self, tmp_path: Path) -> None:
        """Test that a later root is used when earlier roots miss."""
        first = tmp_path / "first"
        second = tmp_path / "second"
        first.mkdir()
        second.mkdir()
        (second / "layout.html").write_text("second")

        assert find_layout("layout", [first, second], ".html") == second / "layout.html"

    def test_subdirectory_name(self, tmp_path: Path) -> None:
        """Test layouts addressed through a subdirectory."""
        (tmp_path / "layouts").mkdir()
        (tmp_path / "layouts" / "main.html").write_text("main")

        assert find_layout("layouts/main", tmp_path, ".html") == tmp_path / "layouts" / "main.html"

    def test_not_found_returns_none(self, tmp_path: Path) -> None:
        """Test that a miss is reported as None, not an error."""
        assert find_layout("missing", str(tmp_path), ".html") is None

    def test_no_roots_returns_none(self) -> None:
        """Test lookup without any configured view roots."""
        assert find_layout("layout", None, ".html") is None

    def test_directory_is_not_a_match(self, tmp_path: Path) -> None:
        """Test that a directory with the candidate name is ignored."""
        (tmp_path / "layout.html").mkdir()

        assert find_layout("layout", tmp_path, ".html") is None
