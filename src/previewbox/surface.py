"""Host-side rendering surface for preview documents.

A preview document is only contained when the hosting page displays it in
a sandboxed frame: scripts allowed, top-level navigation never allowed.
This module builds and checks those sandbox flags, and wraps a rendered
document into an ``<iframe srcdoc>`` or a complete host page.
"""

import logging

from .bundle import PreviewboxError
from .isolator import HASH_MESSAGE_TYPE
from .session import RenderedDocument
from .viewport import ViewportProfile

logger = logging.getLogger(__name__)

DEFAULT_SANDBOX = ("allow-scripts",)

# Tokens a preview frame may carry
_ALLOWED_TOKENS = {
    "allow-scripts",
    "allow-forms",
    "allow-modals",
    "allow-popups",
    "allow-same-origin",
    "allow-downloads",
    "allow-pointer-lock",
}

# Any of these lets the frame navigate the hosting page
_FORBIDDEN_TOKENS = {
    "allow-top-navigation",
    "allow-top-navigation-by-user-activation",
    "allow-top-navigation-to-custom-protocols",
}


def sandbox_flags(allow_forms: bool = False, extra: tuple[str, ...] = ()) -> str:
    """Build the sandbox attribute value for a preview frame.

    Args:
        allow_forms: Add ``allow-forms``.
        extra: Additional sandbox tokens.

    Returns:
        Space-separated sandbox tokens.

    Raises:
        PreviewboxError: If the resulting flags are not safe for a preview.
    """
    tokens = list(DEFAULT_SANDBOX)
    if allow_forms:
        tokens.append("allow-forms")
    for token in extra:
        if token not in tokens:
            tokens.append(token)
    flags = " ".join(tokens)
    validate_sandbox(flags)
    return flags


def validate_sandbox(flags: str) -> None:
    """Check that sandbox flags contain a preview frame.

    Raises:
        PreviewboxError: If scripts are not allowed, top navigation is
            allowed, or a token is unknown.
    """
    tokens = flags.split()

    forbidden = sorted(set(tokens) & _FORBIDDEN_TOKENS)
    if forbidden:
        raise PreviewboxError(
            f"Sandbox must not allow top-level navigation: {', '.join(forbidden)}"
        )

    unknown = sorted(set(tokens) - _ALLOWED_TOKENS)
    if unknown:
        raise PreviewboxError(f"Unknown sandbox token(s): {', '.join(unknown)}")

    if "allow-scripts" not in tokens:
        raise PreviewboxError("Sandbox must include allow-scripts")

    if "allow-same-origin" in tokens:
        logger.warning(
            "Preview sandbox allows same-origin; scripts can reach the host origin"
        )


def _attr_escape(s: str) -> str:
    """Escape a string for a double-quoted HTML attribute value."""
    return (
        s.replace("&", "&amp;")
        .replace('"', "&quot;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
    )


def render_frame(
    rendered: RenderedDocument,
    viewport: ViewportProfile | str = ViewportProfile.DESKTOP,
    sandbox: str | None = None,
) -> str:
    """Wrap a rendered document in a sandboxed ``<iframe srcdoc>``.

    The frame carries the render key, so hosts that diff markup replace the
    whole frame on every render.

    Args:
        rendered: Document to display.
        viewport: Profile (or its name) sizing the frame.
        sandbox: Sandbox flags. Defaults to scripts only.

    Returns:
        The ``<iframe>`` element markup.
    """
    profile = ViewportProfile.parse(viewport)
    if sandbox is None:
        sandbox = " ".join(DEFAULT_SANDBOX)
    validate_sandbox(sandbox)

    width, height = profile.size
    return (
        f'<iframe class="previewbox-frame" title="preview"'
        f' sandbox="{_attr_escape(sandbox)}"'
        f' width="{width}" height="{height}"'
        f' data-viewport="{profile.name.lower()}"'
        f' data-render-key="{_attr_escape(rendered.key)}"'
        f' data-generation="{rendered.generation}"'
        f' srcdoc="{_attr_escape(rendered.markup)}"></iframe>'
    )


def render_host_page(
    rendered: RenderedDocument,
    viewport: ViewportProfile | str = ViewportProfile.DESKTOP,
    title: str = "Preview",
    sandbox: str | None = None,
) -> str:
    """Generate a complete host page displaying a rendered document.

    The page shows the frame centred at the viewport size and mirrors the
    preview's active anchor (sent by the hash shim) into its status line.

    Args:
        rendered: Document to display.
        viewport: Profile (or its name) sizing the frame.
        title: Host page title.
        sandbox: Sandbox flags. Defaults to scripts only.

    Returns:
        Complete HTML string.
    """
    profile = ViewportProfile.parse(viewport)
    frame = render_frame(rendered, profile, sandbox)
    width, height = profile.size

    return f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{_attr_escape(title)}</title>
  <style>
* {{ margin: 0; padding: 0; box-sizing: border-box; }}
body {{ font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; background: #eee; }}
.previewbox-host {{ display: flex; flex-direction: column; align-items: center; gap: 0.5rem; padding: 1rem; }}
.previewbox-status {{ color: #666; font-size: 0.8rem; font-family: monospace; }}
.previewbox-frame {{ width: {width}px; height: {height}px; max-width: 100%; border: 1px solid #ccc; background: white; }}
  </style>
</head>
<body>
  <div class="previewbox-host">
    <div class="previewbox-status">{profile.name.lower()} {width}&times;{height} &middot; render {rendered.generation}</div>
    {frame}
  </div>
  <script>
(function() {{
  'use strict';
  var status = document.querySelector('.previewbox-status');
  var base = status.textContent;
  window.addEventListener('message', function(e) {{
    if (!e.data || e.data.type !== '{HASH_MESSAGE_TYPE}') return;
    status.textContent = base + (e.data.hash ? ' \\u00b7 ' + e.data.hash : '');
  }});
}})();
  </script>
</body>
</html>"""
