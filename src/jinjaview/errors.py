"""Error types raised by the render pipeline.

Every failure reaches the caller as exactly one of these exceptions, either
raised from a coroutine or passed as the error argument of a callback. No
rendered output accompanies an error.
"""

from pathlib import Path


class JinjaViewError(Exception):
    """Base class for all jinjaview errors."""


class FileReadError(JinjaViewError):
    """Raised when a content template or an explicitly named layout is missing or unreadable."""

    def __init__(self, path: str | Path, message: str | None = None) -> None:
        self.path = str(path)
        self.message = message or f"Template not found: {self.path}"
        super().__init__(self.message)


class CompileError(JinjaViewError):
    """Raised when Jinja2 rejects a template or fails while executing it.

    The message is prefixed with the offending file path.
    """

    def __init__(self, path: str | Path, message: str) -> None:
        self.path = str(path)
        super().__init__(f"{self.path}: {message}")


class PartialRegistrationError(JinjaViewError):
    """Raised after bulk partial registration when one or more files failed."""

    def __init__(
        self,
        directory: str | Path,
        failures: list[tuple[str, BaseException]] | None = None,
        message: str | None = None,
    ) -> None:
        self.directory = str(directory)
        self.failures = failures or []
        if message is None:
            names = ", ".join(path for path, _ in self.failures)
            message = f"Failed to register {len(self.failures)} partial(s) from {self.directory}: {names}"
        super().__init__(message)


class AsyncHelperError(JinjaViewError):
    """Raised when an async helper fails, times out, or returns unsafe output."""

    def __init__(self, helper: str, message: str) -> None:
        self.helper = helper
        super().__init__(f"Async helper {helper!r} failed: {message}")
