"""Document composition for previewbox.

Assembles the user's HTML, CSS and JS into one self-contained document
for a sandboxed preview frame. Composition is plain template
concatenation: sources are inserted verbatim and never escaped. Isolation
comes from the frame's sandbox flags and the injected navigation isolator,
not from filtering content.
"""

from .bundle import SourceBundle
from .isolator import get_hash_shim_js, get_isolator_js

RESET_CSS = """
/* previewbox reset */
*, *::before, *::after { box-sizing: border-box; max-width: 100%; }
img { max-width: 100%; height: auto; }
"""


def compose(html: str, css: str, js: str) -> str:
    """Compose a preview document from raw sources.

    The output contains, in order: head metadata (charset, viewport and a
    ``<base href="/">`` pinning relative URLs to the host root), the reset
    styles followed by ``css``, the navigation isolator, then a body with
    ``html`` followed by a script holding ``js`` and the hash shim.

    Any string is valid input. Same inputs always produce the same output.

    Args:
        html: Body markup, inserted verbatim.
        css: Stylesheet source, inserted verbatim after the reset.
        js: Script source, inserted verbatim.

    Returns:
        Complete HTML document string.
    """
    isolator_js = get_isolator_js()
    hash_shim_js = get_hash_shim_js()

    return f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <base href="/">
  <style>{RESET_CSS}
{css}
  </style>
  <script>{isolator_js}
  </script>
</head>
<body>
{html}
<script>
{js}
{hash_shim_js}
</script>
</body>
</html>"""


def compose_bundle(bundle: SourceBundle) -> str:
    """Compose a preview document from a SourceBundle snapshot."""
    return compose(bundle.html, bundle.css, bundle.js)
