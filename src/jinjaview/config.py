"""jinjaview configuration system.

Configuration is YAML-based with CLI overrides for a single render.
Supports environment variable substitution (${VAR}) in config files.

Configuration file discovery (in priority order):
1. CLI --config argument
2. ./.jinjaview/config.yaml
3. ./jinjaview.yaml
"""

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from jinja2 import Environment, select_autoescape

from jinjaview.engine import DEFAULT_PARTIAL_EXTENSIONS, ViewEngine

# =============================================================================
# Configuration Dataclasses
# =============================================================================


@dataclass
class PartialsConfig:
    """Partial registration configuration.

    Attributes:
        directory: Directory scanned for partials (None disables the scan)
        extensions: File extensions treated as templates
    """

    directory: str | None = None
    extensions: list[str] = field(default_factory=lambda: list(DEFAULT_PARTIAL_EXTENSIONS))

    def __post_init__(self) -> None:
        """Validate partials configuration."""
        if not self.extensions:
            raise ValueError("At least one partial extension is required")
        self.extensions = [ext.lstrip(".").lower() for ext in self.extensions]


@dataclass
class RenderConfig:
    """Render behaviour configuration.

    Attributes:
        autoescape: Escape HTML in rendered values
        async_timeout: Seconds to wait for async helpers (None waits forever)
    """

    autoescape: bool = True
    async_timeout: float | None = None

    def __post_init__(self) -> None:
        """Validate render configuration."""
        if self.async_timeout is not None and self.async_timeout <= 0:
            raise ValueError(f"async_timeout must be positive (got {self.async_timeout})")


@dataclass
class JinjaViewConfig:
    """Top-level jinjaview configuration.

    Attributes:
        views: Ordered view roots searched for templates and layouts
        layout: Default layout name, False to disable layouts, or None for the
            implicit "layout" that is skipped when missing
        cache: Cache compiled templates
        partials: Partial registration settings
        render: Render behaviour settings
    """

    views: list[str] = field(default_factory=lambda: ["views"])
    layout: str | bool | None = None
    cache: bool = False
    partials: PartialsConfig = field(default_factory=PartialsConfig)
    render: RenderConfig = field(default_factory=RenderConfig)

    # Runtime overrides (set by loader)
    _config_path: Path | None = field(default=None, repr=False)

    @property
    def config_path(self) -> Path | None:
        """Get the path to the config file that was loaded."""
        return self._config_path

    def settings(self) -> dict[str, Any]:
        """Build the host-framework settings mapping passed with every render."""
        view_options: dict[str, Any] = {}
        if self.layout is not None:
            view_options["layout"] = self.layout
        return {"views": list(self.views), "view options": view_options}

    def render_options(self, **locals: Any) -> dict[str, Any]:
        """Build a complete render options dict from this config plus locals."""
        options: dict[str, Any] = {"settings": self.settings(), "cache": self.cache}
        options.update(locals)
        return options


# =============================================================================
# Environment Variable Substitution
# =============================================================================


def substitute_env_vars(value: Any) -> Any:
    """Substitute environment variables in config values.

    Supports ${VAR} syntax for environment variable substitution.
    Example: ${VIEWS_DIR} -> value of VIEWS_DIR

    Args:
        value: Config value (string, dict, list, or other)

    Returns:
        Value with environment variables substituted
    """
    if isinstance(value, str):
        pattern = re.compile(r"\$\{([^}]+)\}")

        def replace_var(match: re.Match[str]) -> str:
            var_name = match.group(1)
            env_value = os.environ.get(var_name)
            if env_value is None:
                raise ValueError(f"Environment variable not set: {var_name}")
            return env_value

        return pattern.sub(replace_var, value)

    elif isinstance(value, dict):
        return {k: substitute_env_vars(v) for k, v in value.items()}

    elif isinstance(value, list):
        return [substitute_env_vars(v) for v in value]

    return value


# =============================================================================
# Config File Discovery
# =============================================================================


def find_config_file(start_path: Path | None = None) -> Path | None:
    """Find configuration file in standard locations.

    Search order:
    1. ./.jinjaview/config.yaml
    2. ./jinjaview.yaml

    Args:
        start_path: Starting directory for search (defaults to cwd)

    Returns:
        Path to config file if found, None otherwise
    """
    start_path = (start_path or Path.cwd()).resolve()

    candidates = [
        start_path / ".jinjaview" / "config.yaml",
        start_path / "jinjaview.yaml",
    ]

    for candidate in candidates:
        if candidate.exists():
            return candidate

    return None


# =============================================================================
# Config Loading
# =============================================================================


def load_config_from_dict(data: dict[str, Any]) -> JinjaViewConfig:
    """Load configuration from a dictionary.

    Args:
        data: Configuration dictionary

    Returns:
        JinjaViewConfig instance
    """
    data = substitute_env_vars(data)

    config = JinjaViewConfig()

    if "views" in data:
        views = data["views"]
        config.views = [views] if isinstance(views, str) else [str(v) for v in views or []]

    view_options = data.get("view_options") or {}
    if "layout" in view_options:
        config.layout = view_options["layout"] if view_options["layout"] else False

    if "cache" in data:
        config.cache = bool(data["cache"])

    if "partials" in data:
        partials_data = data["partials"] or {}
        config.partials = PartialsConfig(
            directory=partials_data.get("directory"),
            extensions=partials_data.get("extensions", list(DEFAULT_PARTIAL_EXTENSIONS)),
        )

    if "render" in data:
        render_data = data["render"] or {}
        config.render = RenderConfig(
            autoescape=render_data.get("autoescape", True),
            async_timeout=render_data.get("async_timeout"),
        )

    return config


def load_config(
    config_path: Path | None = None,
    auto_discover: bool = True,
) -> JinjaViewConfig:
    """Load configuration from file.

    Args:
        config_path: Explicit path to config file
        auto_discover: Whether to search for config file if not specified

    Returns:
        JinjaViewConfig instance

    Raises:
        FileNotFoundError: If config_path specified but doesn't exist
    """
    if config_path is not None:
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        found_path = config_path
    elif auto_discover:
        found_path = find_config_file()
    else:
        found_path = None

    if found_path is not None:
        with open(found_path) as f:
            data = yaml.safe_load(f) or {}
        config = load_config_from_dict(data)
        config._config_path = found_path
    else:
        config = JinjaViewConfig()

    return config


def create_engine(config: JinjaViewConfig | None = None) -> ViewEngine:
    """Build a ViewEngine from configuration.

    Partials are not scanned here; call ``register_partials`` with
    ``config.partials.directory`` from async code.
    """
    config = config or JinjaViewConfig()
    if config.render.autoescape:
        autoescape = select_autoescape(["html", "hbs", "xml"], default_for_string=True, default=True)
    else:
        autoescape = False

    return ViewEngine(
        environment=Environment(autoescape=autoescape),
        partial_extensions=tuple(config.partials.extensions),
        async_timeout=config.render.async_timeout,
    )


def create_default_config() -> str:
    """Create default configuration YAML content.

    Returns:
        YAML string with default configuration and comments
    """
    return '''# jinjaview configuration

# View roots, searched in order for templates and layouts
views:
  - "views"

view_options:
  # Default layout name, or false to disable layouts. When unset, "layout"
  # is used if it exists and skipped quietly otherwise.
  # layout: "base"

# Cache compiled templates for the life of the process
cache: false

partials:
  # Directory registered as partials before each CLI render
  # directory: "views/partials"
  extensions: ["html", "hbs"]

render:
  autoescape: true
  async_timeout: null   # seconds; null waits for async helpers indefinitely
'''
