"""jinjaview - Jinja2 view engine for web frameworks.

Renders view templates through Jinja2 and adds what a view layer needs on top:
- Compiled-template caching keyed by file path and layout name
- Layout wrapping with an implicit ``layout`` default that falls back quietly
- Async helpers, resolved after the synchronous render and spliced into the
  output
- Helper and partial registration, including bulk partial loading

A default engine is available at module level; ``create()`` returns an
independent one with its own cache and registries.
"""

from typing import Any

from markupsafe import Markup

from jinjaview.asynchelpers import resolve
from jinjaview.cache import TemplateCache
from jinjaview.engine import LayoutDecision, LayoutMode, ViewEngine
from jinjaview.errors import (
    AsyncHelperError,
    CompileError,
    FileReadError,
    JinjaViewError,
    PartialRegistrationError,
)

__version__ = "0.1.0"
__author__ = "jinjaview Contributors"


def create(**kwargs: Any) -> ViewEngine:
    """Create an independent engine (own cache, helpers and partials)."""
    return ViewEngine(**kwargs)


default_engine = create()

render = default_engine.render
render_callback = default_engine.render_callback
compile = default_engine.compile
register_helper = default_engine.register_helper
register_async_helper = default_engine.register_async_helper
register_partial = default_engine.register_partial
register_partials = default_engine.register_partials

__all__ = [
    "AsyncHelperError",
    "CompileError",
    "FileReadError",
    "JinjaViewError",
    "LayoutDecision",
    "LayoutMode",
    "Markup",
    "PartialRegistrationError",
    "TemplateCache",
    "ViewEngine",
    "compile",
    "create",
    "default_engine",
    "register_async_helper",
    "register_helper",
    "register_partial",
    "register_partials",
    "render",
    "render_callback",
    "resolve",
]
