"""Shared pytest fixtures for jinjaview tests.

Fixtures are organized by category:
- View tree fixtures: template directories built under tmp_path
- Engine fixtures: fresh engines with a counting compile hook
- Configuration fixtures: config dictionaries for various scenarios
"""

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from jinjaview import ViewEngine

# =============================================================================
# View Tree Fixtures
# =============================================================================


@pytest.fixture
def views_dir(tmp_path: Path) -> Path:
    """Create a view root with a page, a default layout and an alternate layout."""
    views = tmp_path / "views"
    views.mkdir()
    (views / "index.html").write_text("<p>Hello {{ name }}</p>")
    (views / "layout.html").write_text("<html>{{ body }}</html>")
    (views / "alt.html").write_text("<main class=\"alt\">{{ body }}</main>")
    return views


@pytest.fixture
def bare_views_dir(tmp_path: Path) -> Path:
    """Create a view root with a page and no layout at all."""
    views = tmp_path / "bare"
    views.mkdir()
    (views / "index.html").write_text("<p>Hello {{ name }}</p>")
    return views


@pytest.fixture
def write_template(tmp_path: Path) -> Callable[[str, str], Path]:
    """Return a function that writes a template file under tmp_path."""

    def write(name: str, source: str) -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(source)
        return path

    return write


# =============================================================================
# Engine Fixtures
# =============================================================================


@pytest.fixture
def engine() -> ViewEngine:
    """Create a fresh engine with its own cache."""
    return ViewEngine()


@pytest.fixture
def compile_counter(engine: ViewEngine) -> dict[str, int]:
    """Count calls to the engine's Jinja2 compile step."""
    counts = {"compiles": 0}
    original = engine.environment.from_string

    def counting_from_string(source: str, *args: Any, **kwargs: Any) -> Any:
        counts["compiles"] += 1
        return original(source, *args, **kwargs)

    engine.environment.from_string = counting_from_string  # type: ignore[method-assign]
    return counts


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture
def minimal_config() -> dict[str, Any]:
    """Return a minimal valid jinjaview configuration."""
    return {"views": "views"}


@pytest.fixture
def full_config() -> dict[str, Any]:
    """Return a complete jinjaview configuration with all options."""
    return {
        "views": ["views", "shared/views"],
        "view_options": {"layout": "base"},
        "cache": True,
        "partials": {
            "directory": "views/partials",
            "extensions": [".html", "hbs", "J2"],
        },
        "render": {
            "autoescape": False,
            "async_timeout": 2.5,
        },
    }
