"""previewbox - Compose sandboxed live-preview documents from HTML, CSS and JS."""

__version__ = "0.1.0"

from .bundle import (
    DEFAULT_BUNDLE,
    PreviewboxError,
    SourceBundle,
    export_zip,
    load_bundle,
    write_bundle,
)
from .composer import compose, compose_bundle
from .session import PreviewSession, RenderedDocument
from .viewport import ViewportProfile

__all__ = [
    "compose",
    "compose_bundle",
    "SourceBundle",
    "DEFAULT_BUNDLE",
    "PreviewSession",
    "RenderedDocument",
    "ViewportProfile",
    "PreviewboxError",
    "load_bundle",
    "write_bundle",
    "export_zip",
    "__version__",
]
