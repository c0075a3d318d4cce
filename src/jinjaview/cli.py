"""jinjaview CLI interface.

Commands:
- render: Render a view through the full pipeline (layout, partials, cache)
- validate: Validate a template's Jinja2 syntax
- partials: List the partials a directory would register
- init: Write a default configuration file

Global options:
- --config: Path to configuration file
- --verbose: Enable verbose output with timestamps
- --quiet: Suppress info messages
- --ci: JSON log output
- --version: Show version and exit
"""

import asyncio
from pathlib import Path
from typing import Annotated, Any

import typer
import yaml

from jinjaview import __version__
from jinjaview.config import (
    JinjaViewConfig,
    create_default_config,
    create_engine,
    load_config,
)
from jinjaview.errors import JinjaViewError
from jinjaview.utils.logging import configure_from_cli, get_logger

app = typer.Typer(
    name="jinjaview",
    help="Render Jinja2 views with layouts, partials and async helpers",
    add_completion=False,
    no_args_is_help=True,
)

# Global state
_config: JinjaViewConfig | None = None
_logger = get_logger()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"jinjaview {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to configuration file",
            exists=True,
            dir_okay=False,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose output with timestamps"),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option("--quiet", "-q", help="Suppress info messages (warnings and errors only)"),
    ] = False,
    ci: Annotated[
        bool,
        typer.Option("--ci", help="Enable CI mode with JSON log output"),
    ] = False,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = False,
) -> None:
    """jinjaview - Jinja2 view engine with layouts and async helpers."""
    global _config

    configure_from_cli(verbose=verbose, quiet=quiet, ci=ci)

    try:
        _config = load_config(config_path=config)
        if _config.config_path:
            _logger.debug(f"Loaded config from: {_config.config_path}")
    except FileNotFoundError as e:
        _logger.error(str(e))
        raise typer.Exit(1)
    except (ValueError, yaml.YAMLError) as e:
        _logger.error(f"Failed to load config: {e}")
        raise typer.Exit(1)


def _load_locals(path: Path) -> dict[str, Any]:
    """Read template locals from a YAML or JSON file."""
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Locals file must contain a mapping: {path}")
    return data


# =============================================================================
# render command
# =============================================================================


@app.command()
def render(
    template: Annotated[
        Path,
        typer.Argument(help="Content template to render", exists=True, dir_okay=False),
    ],
    views: Annotated[
        list[Path] | None,
        typer.Option("--views", help="View root (repeatable, searched in order)", file_okay=False),
    ] = None,
    layout: Annotated[
        str | None,
        typer.Option("--layout", "-l", help="Layout name to wrap the content with"),
    ] = None,
    no_layout: Annotated[
        bool,
        typer.Option("--no-layout", help="Render the content without any layout"),
    ] = False,
    locals_file: Annotated[
        Path | None,
        typer.Option("--locals", help="YAML/JSON file with template locals", exists=True, dir_okay=False),
    ] = None,
    partials: Annotated[
        Path | None,
        typer.Option("--partials", "-p", help="Directory of partials to register", file_okay=False),
    ] = None,
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write HTML to this file instead of stdout"),
    ] = None,
    cache: Annotated[
        bool,
        typer.Option("--cache", help="Cache compiled templates"),
    ] = False,
) -> None:
    """Render a view template to HTML."""
    config = _config or JinjaViewConfig()
    engine = create_engine(config)

    try:
        values = _load_locals(locals_file) if locals_file else {}
    except (ValueError, yaml.YAMLError) as e:
        _logger.error(f"Invalid locals file: {e}")
        raise typer.Exit(1)

    options = config.render_options(**values)
    if views:
        options["settings"]["views"] = [str(v) for v in views]
    if cache:
        options["cache"] = True
    if no_layout:
        options["layout"] = False
    elif layout:
        options["layout"] = layout

    partials_dir = partials or (Path(config.partials.directory) if config.partials.directory else None)

    async def run() -> str:
        if partials_dir is not None:
            await engine.register_partials(partials_dir)
        return await engine.render(template, options)

    try:
        html = asyncio.run(run())
    except JinjaViewError as e:
        _logger.error(str(e))
        raise typer.Exit(1)

    if output is None:
        typer.echo(html, nl=False)
        return

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(html, encoding="utf-8")
    _logger.info(f"Wrote {len(html)} characters to {output}")


# =============================================================================
# validate command
# =============================================================================


@app.command()
def validate(
    template: Annotated[
        Path,
        typer.Argument(help="Path to template to validate", exists=True, dir_okay=False),
    ],
) -> None:
    """Validate a template's Jinja2 syntax."""
    from jinja2 import Environment, TemplateSyntaxError

    _logger.info(f"Validating template: {template}")

    try:
        Environment().parse(template.read_text(encoding="utf-8"))
    except TemplateSyntaxError as e:
        _logger.error(f"Template syntax error: {e.message}")
        typer.echo(f"❌ Template syntax error at line {e.lineno}: {e.message}")
        raise typer.Exit(1)

    typer.echo(f"✅ Template is valid: {template}")


# =============================================================================
# partials command
# =============================================================================


@app.command()
def partials(
    directory: Annotated[
        Path,
        typer.Argument(help="Directory to scan for partials", exists=True, file_okay=False),
    ],
) -> None:
    """List the partial names registered from a directory."""
    config = _config or JinjaViewConfig()
    engine = create_engine(config)

    try:
        names = asyncio.run(engine.register_partials(directory))
    except JinjaViewError as e:
        _logger.error(str(e))
        raise typer.Exit(1)

    for name in names:
        typer.echo(name)


# =============================================================================
# init command
# =============================================================================


@app.command()
def init(
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Overwrite an existing configuration file"),
    ] = False,
) -> None:
    """Write a default jinjaview.yaml to the current directory."""
    config_path = Path.cwd() / "jinjaview.yaml"

    if config_path.exists() and not force:
        _logger.error(f"Config file already exists: {config_path} (use --force to overwrite)")
        raise typer.Exit(1)

    config_path.write_text(create_default_config(), encoding="utf-8")
    typer.echo(f"Created {config_path}")


if __name__ == "__main__":
    app()
