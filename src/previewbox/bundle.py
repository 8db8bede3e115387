"""Source bundles and project directories for previewbox.

A SourceBundle holds the three raw source buffers (HTML, CSS, JS) of one
project. Project directories store them as plain files, and bundles can be
exported as a ZIP archive for download.
"""

import zipfile
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any


class PreviewboxError(Exception):
    """Base exception for previewbox errors."""

    pass


@dataclass
class SourceBundle:
    """Raw HTML, CSS and JS sources of a project."""

    html: str = ""
    css: str = ""
    js: str = ""

    def snapshot(self) -> "SourceBundle":
        """Return an independent copy of the current sources."""
        return SourceBundle(html=self.html, css=self.css, js=self.js)

    def replace(self, **changes: str) -> "SourceBundle":
        """Return a copy with some of html/css/js replaced.

        Raises:
            PreviewboxError: If an unknown field is given.
        """
        known = {f.name for f in fields(self)}
        unknown = set(changes) - known
        if unknown:
            raise PreviewboxError(
                f"Unknown bundle field(s): {', '.join(sorted(unknown))}"
            )
        data = asdict(self)
        data.update(changes)
        return SourceBundle(**data)

    def to_dict(self) -> dict[str, str]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SourceBundle":
        return cls(
            html=_text(data.get("html")),
            css=_text(data.get("css")),
            js=_text(data.get("js")),
        )


def _text(value: Any) -> str:
    return "" if value is None else str(value)


# Starter project for a fresh editor session
DEFAULT_BUNDLE = SourceBundle(
    html=(
        "<!DOCTYPE html><html><head><title>New Project</title></head>"
        "<body><h1>New Project</h1></body></html>"
    ),
    css="body { font-family: Arial; }",
    js='console.log("Hello world");',
)


def _file_names(files) -> dict[str, str]:
    """Map bundle field -> file name, honouring a ProjectFilesConfig."""
    if files is None:
        from .config import ProjectFilesConfig

        files = ProjectFilesConfig()
    return {"html": files.html, "css": files.css, "js": files.js}


def load_bundle(directory: Path, files=None) -> SourceBundle:
    """Load a project directory into a SourceBundle.

    The HTML file is required. Missing CSS or JS files load as empty strings.

    Args:
        directory: Project directory.
        files: Optional ProjectFilesConfig with custom file names.

    Returns:
        Loaded bundle.

    Raises:
        PreviewboxError: If the directory or HTML file is missing, or a
            file cannot be read.
    """
    directory = Path(directory)
    if not directory.is_dir():
        raise PreviewboxError(f"Project directory not found: {directory}")

    names = _file_names(files)
    html_path = directory / names["html"]
    if not html_path.is_file():
        raise PreviewboxError(f"HTML file not found: {html_path}")

    sources = {}
    for field_name, file_name in names.items():
        path = directory / file_name
        if not path.is_file():
            sources[field_name] = ""
            continue
        try:
            sources[field_name] = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise PreviewboxError(f"Cannot read {path}: {e}") from e

    return SourceBundle(**sources)


def write_bundle(
    bundle: SourceBundle,
    directory: Path,
    files=None,
    overwrite: bool = False,
) -> list[Path]:
    """Write a bundle to a project directory.

    Args:
        bundle: Sources to write.
        directory: Target directory (created if missing).
        files: Optional ProjectFilesConfig with custom file names.
        overwrite: Replace existing files instead of failing.

    Returns:
        Paths of the written files, in html/css/js order.

    Raises:
        PreviewboxError: If a file exists and overwrite is False, or
            writing fails.
    """
    directory = Path(directory)
    names = _file_names(files)
    targets = {name: directory / file_name for name, file_name in names.items()}

    if not overwrite:
        existing = [str(p) for p in targets.values() if p.exists()]
        if existing:
            raise PreviewboxError(f"File(s) already exist: {', '.join(existing)}")

    try:
        directory.mkdir(parents=True, exist_ok=True)
        for field_name, path in targets.items():
            path.write_text(getattr(bundle, field_name), encoding="utf-8")
    except OSError as e:
        raise PreviewboxError(f"Cannot write project {directory}: {e}") from e

    return list(targets.values())


def export_zip(bundle: SourceBundle, output_path: Path, files=None) -> Path:
    """Export a bundle as a ZIP archive with one file per source.

    Args:
        bundle: Sources to export.
        output_path: Path of the archive to create.
        files: Optional ProjectFilesConfig with custom file names.

    Returns:
        Path to the written archive.

    Raises:
        PreviewboxError: If the archive cannot be written.
    """
    output_path = Path(output_path)
    names = _file_names(files)

    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with zipfile.ZipFile(output_path, "w", zipfile.ZIP_DEFLATED) as zf:
            for field_name, file_name in names.items():
                zf.writestr(file_name, getattr(bundle, field_name))
    except OSError as e:
        raise PreviewboxError(f"Cannot write archive {output_path}: {e}") from e

    return output_path
