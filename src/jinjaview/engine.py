"""View engine: Jinja2 rendering with caching, layouts and async helpers.

This is the entry point host frameworks call. A render call goes through
these stages:
1. Decide whether a layout applies (explicit name, explicit none, or the
   implicit ``layout`` default)
2. Load the content template from cache or disk and render it
3. If a layout was found, bind the content to ``body`` and render the layout
4. Await pending async helpers and substitute their placeholders

File reads and async helpers are the only points where a call yields.
"""

import asyncio
import logging
import os
from collections.abc import Callable, Coroutine, Mapping, MutableMapping
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

from jinja2 import ChoiceLoader, DictLoader, Environment, TemplateSyntaxError, select_autoescape
from markupsafe import Markup

from jinjaview.asynchelpers import SENTINEL, async_scope, make_async_helper, substitute
from jinjaview.cache import FILE, LAYOUT, CompiledTemplate, TemplateCache
from jinjaview.errors import AsyncHelperError, CompileError, FileReadError, PartialRegistrationError
from jinjaview.layouts import find_layout

logger = logging.getLogger(__name__)

DEFAULT_LAYOUT = "layout"
DEFAULT_PARTIAL_EXTENSIONS = ("html", "hbs")

RenderCallback = Callable[[BaseException | None, str | None], None]


class LayoutMode(Enum):
    """How the layout for a render call was chosen."""

    EXPLICIT = "explicit"
    NONE = "none"
    IMPLICIT = "implicit"


@dataclass(frozen=True)
class LayoutDecision:
    """Layout choice for one render call.

    Attributes:
        mode: Explicit name, explicit no-layout, or implicit default
        name: Layout name to look up (None when mode is NONE)
    """

    mode: LayoutMode
    name: str | None = None

    @classmethod
    def from_options(cls, options: Mapping[str, Any]) -> "LayoutDecision":
        """Derive the decision from render options and inherited view options.

        A ``layout`` key in the options wins over
        ``settings["view options"]["layout"]``. A present but falsy value
        disables the layout.
        """
        missing = object()
        layout = options.get("layout", missing)

        if layout is missing:
            settings = options.get("settings") or {}
            view_options = settings.get("view options") or {}
            layout = view_options.get("layout", missing)

        if layout is missing:
            return cls(LayoutMode.IMPLICIT, DEFAULT_LAYOUT)
        if not layout:
            return cls(LayoutMode.NONE)
        return cls(LayoutMode.EXPLICIT, str(layout))


class ViewEngine:
    """Renders view templates for a host web framework.

    Each instance owns its Jinja2 environment, helper and partial registries,
    and a TemplateCache that lives as long as the instance.

    Usage:
        engine = ViewEngine()
        engine.register_async_helper("user_name", fetch_user_name)
        html = await engine.render("/app/views/index.html", {
            "settings": {"views": "/app/views"},
            "title": "Home",
        })
    """

    def __init__(
        self,
        environment: Environment | None = None,
        cache: TemplateCache | None = None,
        partial_extensions: tuple[str, ...] = DEFAULT_PARTIAL_EXTENSIONS,
        async_timeout: float | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            environment: Jinja2 environment to compile with (a fresh one if None)
            cache: Compiled-template cache (a fresh one if None)
            partial_extensions: File extensions accepted by register_partials
            async_timeout: Seconds to wait for async helpers; None waits forever
        """
        self.partials: dict[str, str] = {}
        if environment is None:
            environment = Environment(
                autoescape=select_autoescape(["html", "hbs", "xml"], default_for_string=True, default=True),
            )
        self.environment = environment
        partial_loader = DictLoader(self.partials)
        if self.environment.loader is None:
            self.environment.loader = partial_loader
        else:
            self.environment.loader = ChoiceLoader([partial_loader, self.environment.loader])
        self.cache = cache if cache is not None else TemplateCache()
        self.partial_extensions = tuple(ext.lstrip(".").lower() for ext in partial_extensions)
        self.async_timeout = async_timeout

    # =========================================================================
    # Rendering
    # =========================================================================

    async def render(self, filename: str | os.PathLike[str], options: MutableMapping[str, Any]) -> str:
        """Render a view to its final HTML.

        Args:
            filename: Path of the content template
            options: Render options; also the template locals. ``body`` is set
                on it in place when a layout wraps the content.

        Returns:
            Rendered HTML with all async placeholders resolved

        Raises:
            FileReadError: Content template or explicit layout not found
            CompileError: Jinja2 rejected or failed to execute a template
            AsyncHelperError: An async helper failed or timed out, or a
                filter altered its placeholder
        """
        path = os.path.abspath(os.fspath(filename))
        decision = LayoutDecision.from_options(options)

        with async_scope() as registry:
            layout = None
            if decision.mode is not LayoutMode.NONE:
                layout = await self._load_layout(decision, path, options)

            content = await self._render_file(path, options)
            if layout is None:
                rendered = content
            else:
                options["body"] = Markup(content)
                rendered = self._execute(layout, options, decision.name or DEFAULT_LAYOUT)

            values = await registry.done(timeout=self.async_timeout)

        html = substitute(rendered, values)
        if values and SENTINEL in html:
            altered = [token for token in values if token not in rendered]
            name = registry.helper_name(altered[0]) if altered else "<unknown>"
            raise AsyncHelperError(name, "placeholder was altered during rendering (was a filter applied to it?)")
        logger.debug("Rendered %s (%d characters, %d async values)", path, len(html), len(values))
        return html

    def render_callback(
        self,
        filename: str | os.PathLike[str],
        options: MutableMapping[str, Any],
        callback: RenderCallback,
    ) -> "asyncio.Task[None] | None":
        """Render with a ``callback(error, html)`` continuation.

        Inside a running event loop the render is scheduled as its own task
        and the task is returned. Without one, the render runs to completion
        before this returns.
        """

        async def run() -> None:
            try:
                html = await self.render(filename, options)
            except Exception as e:
                callback(e, None)
            else:
                callback(None, html)

        return _run_or_schedule(run())

    __call__ = render_callback

    async def _load_layout(
        self,
        decision: LayoutDecision,
        path: str,
        options: Mapping[str, Any],
    ) -> CompiledTemplate | None:
        name = decision.name or DEFAULT_LAYOUT
        cached = self.cache.get(name, namespace=LAYOUT)
        if cached is not None:
            return cached

        settings = options.get("settings") or {}
        layout_path = find_layout(name, settings.get("views"), os.path.splitext(path)[1])
        if layout_path is None:
            if decision.mode is LayoutMode.EXPLICIT:
                raise FileReadError(name, f"Layout not found: {name}")
            logger.debug("No default layout for %s, rendering content only", path)
            return None

        source = await self._read(layout_path)
        compiled = self._compile(source, layout_path)
        self.cache.put(name, compiled, bool(options.get("cache")), namespace=LAYOUT)
        return compiled

    async def _render_file(self, path: str, options: Mapping[str, Any]) -> str:
        compiled = self.cache.get(path, namespace=FILE)
        if compiled is None:
            source = await self._read(path)
            compiled = self._compile(source, path)
            self.cache.put(path, compiled, bool(options.get("cache")), namespace=FILE)
        return self._execute(compiled, options, path)

    async def _read(self, path: str | Path) -> str:
        try:
            return await asyncio.to_thread(Path(path).read_text, encoding="utf-8")
        except OSError as e:
            raise FileReadError(path, f"Failed to read template {path}: {e}") from e

    def _compile(self, source: str, path: str | Path) -> CompiledTemplate:
        try:
            return self.environment.from_string(source).render
        except TemplateSyntaxError as e:
            raise CompileError(path, e.message or str(e)) from e

    def _execute(self, compiled: CompiledTemplate, options: Mapping[str, Any], path: str | Path) -> str:
        try:
            return compiled(options)
        except Exception as e:
            raise CompileError(path, str(e)) from e

    # =========================================================================
    # Direct compile (no layout, cache or async resolution)
    # =========================================================================

    def compile(self, source: Any, options: Mapping[str, Any] | None = None) -> Any:
        """Compile source into a ``fn(locals) -> str`` render function.

        Non-string input is returned unchanged. Callables under the
        ``block_helpers`` local are exposed to that render by name.
        """
        if not isinstance(source, str):
            return source

        template = self.environment.from_string(source)

        def render(values: Mapping[str, Any]) -> str:
            context = dict(values)
            context.update(values.get("block_helpers") or {})
            return template.render(context)

        return render

    # =========================================================================
    # Helpers and partials
    # =========================================================================

    def register_helper(self, name: str, fn: Callable[..., Any]) -> None:
        self.environment.globals[name] = fn

    def register_async_helper(self, name: str, fn: Callable[..., Any]) -> None:
        """Register a helper whose value is computed after the synchronous render.

        ``fn`` may be a coroutine function or return a plain value; whatever it
        produces replaces the helper's placeholder in the final output.
        """
        self.environment.globals[name] = make_async_helper(name, fn)

    def register_partial(self, name: str, source: str) -> None:
        self.partials[name] = source

    async def register_partials(self, directory: str | os.PathLike[str]) -> list[str]:
        """Register every template file in directory as a partial.

        The scan is not recursive. Subdirectories and files whose extension
        is not a recognized template extension are skipped. Partial names are the file stem with
        spaces and hyphens replaced by underscores.

        Returns:
            Names of the registered partials, sorted

        Raises:
            PartialRegistrationError: Directory unreadable, or one or more
                files failed to read (after all files were attempted)
        """
        directory = Path(directory)
        try:
            entries = await asyncio.to_thread(lambda: sorted(directory.iterdir()))
        except OSError as e:
            raise PartialRegistrationError(directory, message=f"Cannot list partials directory {directory}: {e}") from e

        candidates = []
        for entry in entries:
            if not entry.is_file() or entry.suffix.lstrip(".").lower() not in self.partial_extensions:
                logger.debug("Skipping non-template file %s", entry)
                continue
            candidates.append(entry)

        results = await asyncio.gather(
            *(asyncio.to_thread(entry.read_text, encoding="utf-8") for entry in candidates),
            return_exceptions=True,
        )

        registered: list[str] = []
        failures: list[tuple[str, BaseException]] = []
        for entry, result in zip(candidates, results, strict=True):
            if isinstance(result, BaseException):
                failures.append((str(entry), result))
                continue
            name = partial_name(entry)
            self.register_partial(name, result)
            registered.append(name)

        if failures:
            raise PartialRegistrationError(directory, failures)

        logger.info("Registered %d partial(s) from %s", len(registered), directory)
        return sorted(registered)

    def register_partials_callback(
        self,
        directory: str | os.PathLike[str],
        callback: Callable[[BaseException | None], None] | None = None,
    ) -> "asyncio.Task[None] | None":
        """Callback form of register_partials; ``callback(error)`` fires once."""

        async def run() -> None:
            try:
                await self.register_partials(directory)
            except Exception as e:
                if callback is not None:
                    callback(e)
            else:
                if callback is not None:
                    callback(None)

        return _run_or_schedule(run())


def _run_or_schedule(coro: Coroutine[Any, Any, None]) -> "asyncio.Task[None] | None":
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        asyncio.run(coro)
        return None
    return loop.create_task(coro)


def partial_name(path: str | os.PathLike[str]) -> str:
    """Derive a partial name from its file name (``my-nav bar.hbs`` -> ``my_nav_bar``)."""
    stem = Path(path).stem
    return stem.replace(" ", "_").replace("-", "_")
