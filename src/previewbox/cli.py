"""Command-line interface for previewbox."""

import logging
import threading
from pathlib import Path

import click
import yaml

from . import __version__
from .bundle import (
    DEFAULT_BUNDLE,
    PreviewboxError,
    export_zip,
    load_bundle,
    write_bundle,
)
from .composer import compose_bundle
from .config import (
    CONFIG_FILENAME,
    PreviewboxConfig,
    config_to_dict,
    create_default_config,
    find_config_file,
    load_config,
)
from .importer import import_page
from .session import PreviewSession, RenderedDocument
from .surface import render_host_page, sandbox_flags
from .viewport import ViewportProfile
from .watch import ProjectWatcher

_VIEWPORT_CHOICES = [p.name.lower() for p in ViewportProfile]


@click.group()
@click.version_option(version=__version__, prog_name="previewbox")
@click.option("-v", "--verbose", count=True, help="Log progress (-vv for debug)")
def main(verbose):
    """Compose sandboxed live-preview documents from HTML, CSS and JS.

    A project is a directory holding index.html, style.css and index.js.
    previewbox composes them into one document that runs inside a
    sandboxed iframe with in-page anchor navigation only.

    \b
    Quick start:
      previewbox new mysite                    # Starter project
      previewbox render mysite -o doc.html     # Composed preview document
      previewbox preview mysite -o host.html   # Host page with sandboxed frame
      previewbox watch mysite -o host.html     # Re-render on every save
      previewbox export mysite                 # ZIP archive of the sources
    """
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG if verbose > 1 else logging.INFO,
            format="%(levelname)s %(name)s: %(message)s",
        )


def _config_option(func):
    return click.option(
        "-c",
        "--config",
        "config_path",
        type=click.Path(exists=True),
        help="Config file path",
    )(func)


def _load(config_path: str | None, directory: str | Path, **overrides) -> PreviewboxConfig:
    try:
        return load_config(
            config_path=Path(config_path) if config_path else None,
            start_path=Path(directory),
            **overrides,
        )
    except PreviewboxError as e:
        raise click.ClickException(str(e))


def _write_output(text: str, output: str | None) -> None:
    if output is None:
        click.echo(text)
        return
    path = Path(output)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    except OSError as e:
        raise click.ClickException(f"Cannot write output {path}: {e}")
    click.echo(f"Wrote: {_relative_path(path)}", err=True)


@main.command()
@click.argument("directory", type=click.Path(file_okay=False))
@click.option("--force", is_flag=True, help="Overwrite existing project files")
@_config_option
def new(directory, force, config_path):
    """Create a starter project in DIRECTORY."""
    cfg = _load(config_path, directory)
    try:
        written = write_bundle(DEFAULT_BUNDLE, Path(directory), cfg.files, overwrite=force)
    except PreviewboxError as e:
        raise click.ClickException(str(e))
    for path in written:
        click.echo(f"Created: {_relative_path(path)}")


@main.command()
@click.argument("directory", type=click.Path(exists=True, file_okay=False))
@click.option("-o", "--output", type=click.Path(dir_okay=False), help="Output file (default: stdout)")
@_config_option
def render(directory, output, config_path):
    """Compose the preview document for the project in DIRECTORY."""
    cfg = _load(config_path, directory)
    try:
        bundle = load_bundle(Path(directory), cfg.files)
    except PreviewboxError as e:
        raise click.ClickException(str(e))
    _write_output(compose_bundle(bundle), output)


@main.command()
@click.argument("directory", type=click.Path(exists=True, file_okay=False))
@click.option("-o", "--output", type=click.Path(dir_okay=False), help="Output file (default: stdout)")
@click.option("--viewport", type=click.Choice(_VIEWPORT_CHOICES), help="Frame size profile")
@click.option("--allow-forms", is_flag=True, help="Allow forms inside the frame")
@_config_option
def preview(directory, output, viewport, allow_forms, config_path):
    """Write a host page showing DIRECTORY in a sandboxed frame."""
    cfg = _load(config_path, directory, viewport_override=viewport)
    if allow_forms:
        cfg.preview.allow_forms = True

    with PreviewSession(debounce_ms=cfg.preview.debounce_ms) as session:
        try:
            session.update(load_bundle(Path(directory), cfg.files))
        except PreviewboxError as e:
            raise click.ClickException(str(e))
        rendered = session.flush()

    _write_output(_host_page(rendered, cfg, directory), output)


@main.command("import")
@click.argument("page", type=click.Path(exists=True, dir_okay=False))
@click.argument("directory", type=click.Path(file_okay=False))
@click.option("--force", is_flag=True, help="Overwrite existing project files")
@_config_option
def import_(page, directory, force, config_path):
    """Split a standalone HTML PAGE into a project in DIRECTORY."""
    cfg = _load(config_path, Path(page).parent)
    try:
        bundle = import_page(Path(page))
        written = write_bundle(bundle, Path(directory), cfg.files, overwrite=force)
    except PreviewboxError as e:
        raise click.ClickException(str(e))
    for path in written:
        click.echo(f"Created: {_relative_path(path)}")


@main.command()
@click.argument("directory", type=click.Path(exists=True, file_okay=False))
@click.option("-o", "--output", type=click.Path(dir_okay=False), help="Archive path (default: <dir>.zip)")
@_config_option
def export(directory, output, config_path):
    """Export the project in DIRECTORY as a ZIP archive."""
    cfg = _load(config_path, directory)
    source = Path(directory)
    if output is None:
        output = source.resolve().parent / f"{source.resolve().name}.zip"
    try:
        bundle = load_bundle(source, cfg.files)
        archive = export_zip(bundle, Path(output), cfg.files)
    except PreviewboxError as e:
        raise click.ClickException(str(e))
    click.echo(f"Exported: {_relative_path(archive)}")


@main.command()
@click.argument("directory", type=click.Path(exists=True, file_okay=False))
@click.option("-o", "--output", type=click.Path(dir_okay=False), required=True, help="Host page to rewrite")
@click.option("--viewport", type=click.Choice(_VIEWPORT_CHOICES), help="Frame size profile")
@click.option("--interval", type=float, default=0.5, show_default=True, help="Poll interval in seconds")
@_config_option
def watch(directory, output, viewport, interval, config_path):
    """Rewrite a host page whenever the project in DIRECTORY changes.

    Saves are debounced: a burst of edits produces one render.
    Press Ctrl+C to stop.
    """
    cfg = _load(config_path, directory, viewport_override=viewport)
    output_path = Path(output)

    def on_render(rendered: RenderedDocument) -> None:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(_host_page(rendered, cfg, directory), encoding="utf-8")
        click.echo(f"Rendered #{rendered.generation}: {_relative_path(output_path)}")

    stop = threading.Event()
    with PreviewSession(on_render, debounce_ms=cfg.preview.debounce_ms) as session:
        watcher = ProjectWatcher(Path(directory), session, cfg.files)
        click.echo(f"Watching {_relative_path(Path(directory))} (Ctrl+C to stop)")
        try:
            watcher.run(interval, stop)
        except KeyboardInterrupt:
            stop.set()
            click.echo("\nStopped")


def _host_page(rendered: RenderedDocument, cfg: PreviewboxConfig, directory) -> str:
    return render_host_page(
        rendered,
        viewport=cfg.viewport_profile,
        title=f"Preview: {Path(directory).resolve().name}",
        sandbox=sandbox_flags(allow_forms=cfg.preview.allow_forms),
    )


@main.group()
def config():
    """Manage previewbox configuration."""
    pass


@config.command("init")
@click.option(
    "-d",
    "--directory",
    type=click.Path(exists=True, file_okay=False),
    help="Directory to create config in (default: current)",
)
def config_init(directory):
    """Create a .previewbox.yaml config file."""
    try:
        config_path = create_default_config(Path(directory) if directory else None)
    except PreviewboxError as e:
        raise click.ClickException(str(e))
    click.echo(f"Created: {_relative_path(config_path)}")


@config.command("show")
@_config_option
def config_show(config_path):
    """Show the effective configuration."""
    cfg = _load(config_path, Path.cwd())
    click.echo(yaml.dump(config_to_dict(cfg), default_flow_style=False, sort_keys=False))


@config.command("where")
@click.option(
    "-d",
    "--directory",
    type=click.Path(exists=True, file_okay=False),
    help="Directory to search from (default: current)",
)
def config_where(directory):
    """Show which config file would be used."""
    found = find_config_file(Path(directory) if directory else None)
    if found is None:
        click.echo(f"No {CONFIG_FILENAME} found")
    else:
        click.echo(str(found))


def _relative_path(path: Path) -> str:
    """Get a relative path for display."""
    try:
        return str(Path(path).resolve().relative_to(Path.cwd().resolve()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main()
