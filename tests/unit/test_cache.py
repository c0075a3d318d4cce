"""Unit tests for the compiled-template cache."""

from jinjaview.cache import FILE, LAYOUT, TemplateCache


def _compiled(text: str):
    return lambda values: text


class TestTemplateCache:
    """Tests for TemplateCache."""

    def test_get_missing_returns_none(self) -> None:
        """Test lookup of an unknown key."""
        cache = TemplateCache()

        assert cache.get("/views/index.html") is None

    def test_put_enabled_stores(self) -> None:
        """Test that an enabled put stores the entry."""
        cache = TemplateCache()
        compiled = _compiled("a")

        stored = cache.put("/views/index.html", compiled, enabled=True)

        assert stored is True
        assert cache.get("/views/index.html") is compiled
        assert "/views/index.html" in cache
        assert len(cache) == 1

    def test_put_disabled_skips(self) -> None:
        """Test that a disabled put leaves the cache untouched."""
        cache = TemplateCache()

        stored = cache.put("/views/index.html", _compiled("a"), enabled=False)

        assert stored is False
        assert cache.get("/views/index.html") is None
        assert len(cache) == 0

    def test_disabled_put_does_not_hide_existing_entry(self) -> None:
        """Test that reads still see entries cached by earlier calls."""
        cache = TemplateCache()
        first = _compiled("first")
        cache.put("/views/index.html", first, enabled=True)

        cache.put("/views/index.html", _compiled("second"), enabled=False)

        assert cache.get("/views/index.html") is first

    def test_last_write_wins(self) -> None:
        """Test that repeated enabled puts replace the entry."""
        cache = TemplateCache()
        second = _compiled("second")
        cache.put("key", _compiled("first"), enabled=True)

        cache.put("key", second, enabled=True)

        assert cache.get("key") is second

    def test_namespaces_do_not_collide(self) -> None:
        """Test that a layout name never shadows a file path."""
        cache = TemplateCache()
        page = _compiled("page")
        layout = _compiled("layout")

        cache.put("layout", page, enabled=True, namespace=FILE)
        cache.put("layout", layout, enabled=True, namespace=LAYOUT)

        assert cache.get("layout", namespace=FILE) is page
        assert cache.get("layout", namespace=LAYOUT) is layout
        assert (LAYOUT, "layout") in cache

    def test_clear(self) -> None:
        """Test clearing all entries."""
        cache = TemplateCache()
        cache.put("a", _compiled("a"), enabled=True)
        cache.put("b", _compiled("b"), enabled=True, namespace=LAYOUT)

        cache.clear()

        assert len(cache) == 0
