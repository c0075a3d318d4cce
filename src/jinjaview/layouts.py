"""Layout discovery across one or more view roots."""

import logging
import os
from collections.abc import Sequence
from pathlib import Path

logger = logging.getLogger(__name__)

ViewRoots = str | os.PathLike[str] | Sequence[str | os.PathLike[str]] | None


def normalize_view_roots(views: ViewRoots) -> list[Path]:
    """Turn the host framework's ``views`` setting into an ordered list of roots.

    Args:
        views: A single directory, an ordered list of directories, or None

    Returns:
        List of root paths in search order (empty when unset)
    """
    if not views:
        return []
    if isinstance(views, (str, os.PathLike)):
        return [Path(views)]
    return [Path(root) for root in views]


def find_layout(name: str, views: ViewRoots, extension: str) -> Path | None:
    """Find the first existing layout file across the view roots.

    A name without an extension borrows ``extension`` from the template being
    rendered, so ``index.hbs`` pulls ``layout.hbs`` while ``index.html`` pulls
    ``layout.html``.

    Args:
        name: Layout name, optionally with a subdirectory or extension
        views: View root(s) searched in order
        extension: Extension of the calling template, including the dot

    Returns:
        Path of the first match, or None when no root has the file
    """
    candidate = name if os.path.splitext(name)[1] else name + extension

    for root in normalize_view_roots(views):
        layout_path = root / candidate
        # One synchronous probe per uncached layout; the compiled result is cached.
        if layout_path.is_file():
            logger.debug("Resolved layout %r to %s", name, layout_path)
            return layout_path

    logger.debug("Layout %r not found in %s", candidate, views)
    return None
