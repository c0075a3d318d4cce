"""Compiled-template cache.

Content templates are keyed by absolute file path and layouts by layout name.
The two live in separate namespaces so a layout named like a path never
shadows a content template.
"""

import logging
from collections.abc import Callable, Mapping
from typing import Any

logger = logging.getLogger(__name__)

CompiledTemplate = Callable[[Mapping[str, Any]], str]

FILE = "file"
LAYOUT = "layout"


class TemplateCache:
    """Append-only map of template identifier to compiled render function.

    The cache has no eviction and no size bound; it lives exactly as long as
    the engine that owns it. Writes only happen for calls that enabled caching,
    while reads are always consulted.

    Usage:
        cache = TemplateCache()
        cache.put("/views/index.html", compiled, enabled=True)
        cache.get("/views/index.html")
    """

    def __init__(self) -> None:
        self._entries: dict[tuple[str, str], CompiledTemplate] = {}

    def get(self, key: str, namespace: str = FILE) -> CompiledTemplate | None:
        """Return the compiled template for key, or None when absent."""
        compiled = self._entries.get((namespace, key))
        if compiled is not None:
            logger.debug("Template cache hit: %s:%s", namespace, key)
        return compiled

    def put(
        self,
        key: str,
        compiled: CompiledTemplate,
        enabled: bool,
        namespace: str = FILE,
    ) -> bool:
        """Store compiled under key when enabled.

        Concurrent first writes of one key may both land; the values are
        equivalent so the last one wins.

        Returns:
            True if the entry was stored
        """
        if not enabled:
            return False
        self._entries[(namespace, key)] = compiled
        logger.debug("Cached compiled template: %s:%s", namespace, key)
        return True

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, item: object) -> bool:
        if isinstance(item, tuple):
            return item in self._entries
        return (FILE, item) in self._entries

    def __len__(self) -> int:
        return len(self._entries)
