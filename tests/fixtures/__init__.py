"""Test fixtures for jinjaview.

Helpers shared by unit and integration tests that are not pytest fixtures.
"""

from pathlib import Path
from typing import Any

# Path to fixtures directory
FIXTURES_DIR = Path(__file__).parent


def make_options(views: Path | list[Path] | None, **locals: Any) -> dict[str, Any]:
    """Build render options the way a host framework would.

    Args:
        views: View root(s) for ``settings["views"]``
        **locals: Template locals and render flags (layout, cache)

    Returns:
        Options dict suitable for ViewEngine.render
    """
    if isinstance(views, list):
        roots: Any = [str(v) for v in views]
    else:
        roots = str(views) if views is not None else None
    options: dict[str, Any] = {"settings": {"views": roots}}
    options.update(locals)
    return options
