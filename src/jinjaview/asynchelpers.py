"""Deferred resolution of async helper values.

Jinja2 calls helpers synchronously and expects a string back. An async helper
instead registers its work with the registry of the render call in progress
and returns a placeholder token. Once the whole page (content and layout) has
rendered, the engine awaits every pending helper and swaps each token for its
result in a single substitution pass.

The registry of the current call is carried in a ContextVar, so concurrent
render calls running as separate tasks never see each other's tokens.
"""

import asyncio
import inspect
import itertools
import logging
import re
import secrets
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any

from markupsafe import Markup

from jinjaview.errors import AsyncHelperError

logger = logging.getLogger(__name__)

# ASCII SUB: never produced by ordinary template text or helper output.
SENTINEL = "\x1a"
_TOKEN_RE = re.compile(SENTINEL + r"[0-9a-f]+:\d+" + SENTINEL)

_current_registry: ContextVar["AsyncRegistry | None"] = ContextVar(
    "jinjaview_async_registry", default=None
)


@dataclass
class PendingCall:
    """One async helper invocation waiting for the substitution pass."""

    name: str
    fn: Callable[..., Any]
    args: tuple[Any, ...] = ()
    kwargs: dict[str, Any] = field(default_factory=dict)

    async def run(self) -> Any:
        result = self.fn(*self.args, **self.kwargs)
        if inspect.isawaitable(result):
            result = await result
        return result


class AsyncRegistry:
    """Pending async work for exactly one top-level render call.

    Attributes:
        call_id: Random hex id embedded in every token this registry issues
    """

    def __init__(self) -> None:
        self.call_id = secrets.token_hex(6)
        self._counter = itertools.count()
        self._pending: dict[str, PendingCall] = {}
        self._names: dict[str, str] = {}

    def __len__(self) -> int:
        return len(self._pending)

    def helper_name(self, token: str) -> str:
        """Name of the helper that issued token."""
        return self._names.get(token, "<unknown>")

    @property
    def tokens(self) -> list[str]:
        return list(self._pending)

    def resolve(
        self,
        fn: Callable[..., Any],
        args: tuple[Any, ...] = (),
        kwargs: dict[str, Any] | None = None,
        name: str | None = None,
    ) -> Markup:
        """Register fn for later evaluation and return its placeholder token.

        The token is Markup so autoescaping leaves it untouched.
        """
        token = f"{SENTINEL}{self.call_id}:{next(self._counter)}{SENTINEL}"
        call_name = name or getattr(fn, "__name__", repr(fn))
        self._names[token] = call_name
        self._pending[token] = PendingCall(
            name=call_name,
            fn=fn,
            args=args,
            kwargs=kwargs or {},
        )
        return Markup(token)

    async def done(self, timeout: float | None = None) -> dict[str, str]:
        """Run every pending call concurrently and collect results by token.

        All calls settle before this returns, successful or not. The first
        failure (in registration order) is then raised.

        Args:
            timeout: Seconds to wait for all calls; None waits indefinitely

        Returns:
            Mapping of token to resolved string

        Raises:
            AsyncHelperError: If a helper raised, timed out, or returned a
                value containing the placeholder delimiter
        """
        if not self._pending:
            return {}

        pending = dict(self._pending)
        self._pending.clear()
        tasks = {token: asyncio.ensure_future(call.run()) for token, call in pending.items()}

        try:
            _, unfinished = await asyncio.wait(tasks.values(), timeout=timeout)
        except asyncio.CancelledError:
            # The render call itself was cancelled; its helpers go with it.
            for task in tasks.values():
                task.cancel()
            await asyncio.gather(*tasks.values(), return_exceptions=True)
            raise
        if unfinished:
            for task in unfinished:
                task.cancel()
            await asyncio.gather(*unfinished, return_exceptions=True)
            stalled = [pending[t].name for t, task in tasks.items() if task in unfinished]
            logger.warning("Async helpers timed out after %ss: %s", timeout, stalled)
            raise AsyncHelperError(stalled[0], f"timed out after {timeout}s")

        failures = [(pending[t].name, task.exception()) for t, task in tasks.items() if task.exception()]
        for name, exc in failures:
            logger.warning("Async helper %s raised: %s", name, exc)
        if failures:
            name, exc = failures[0]
            raise AsyncHelperError(name, str(exc)) from exc

        values: dict[str, str] = {}
        for token, task in tasks.items():
            call = pending[token]
            result = task.result()
            value = "" if result is None else str(result)
            if SENTINEL in value:
                raise AsyncHelperError(call.name, "resolved value contains the placeholder delimiter")
            values[token] = value

        return values


def substitute(rendered: str, values: dict[str, str]) -> str:
    """Replace every placeholder token in rendered with its resolved value.

    A single regex pass is used, so resolved values are never re-scanned.
    Tokens without a value are left as they are.
    """
    if not values:
        return rendered
    return _TOKEN_RE.sub(lambda match: values.get(match.group(0), match.group(0)), rendered)


def current_registry() -> AsyncRegistry:
    """Return the registry of the render call in progress."""
    registry = _current_registry.get()
    if registry is None:
        raise RuntimeError("Async helpers can only be resolved during a render call")
    return registry


@contextmanager
def async_scope() -> Iterator[AsyncRegistry]:
    """Bind a fresh registry to the current context for one render call."""
    registry = AsyncRegistry()
    reset_token = _current_registry.set(registry)
    try:
        yield registry
    finally:
        _current_registry.reset(reset_token)


def resolve(fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Markup:
    """Defer fn(*args, **kwargs) to the end of the current render call.

    Call this from a helper while a template is rendering; embed the returned
    token in the helper's output.
    """
    return current_registry().resolve(fn, args, kwargs)


def make_async_helper(name: str, fn: Callable[..., Any]) -> Callable[..., Markup]:
    """Wrap fn so that calling it from a template defers it and yields a token."""

    def helper(*args: Any, **kwargs: Any) -> Markup:
        return current_registry().resolve(fn, args, kwargs, name=name)

    helper.__name__ = name
    helper.__doc__ = fn.__doc__
    return helper
