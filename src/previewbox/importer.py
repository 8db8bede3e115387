"""Import standalone HTML pages as source bundles.

A full page carries its styles and scripts inline. Importing splits it
into the three editor buffers: inline ``<style>`` blocks become the CSS,
inline scripts become the JS, and the body markup becomes the HTML.
"""

from pathlib import Path

from bs4 import BeautifulSoup, Doctype

from .bundle import PreviewboxError, SourceBundle

# Script types executed as classic JavaScript
_JS_TYPES = {
    "",
    "text/javascript",
    "application/javascript",
    "application/x-javascript",
    "text/ecmascript",
}


def _is_inline_javascript(script) -> bool:
    if script.get("src"):
        return False
    return script.get("type", "").strip().lower() in _JS_TYPES


def split_document(page: str) -> SourceBundle:
    """Split a standalone HTML page into html, css and js sources.

    Inline ``<style>`` contents are joined (blank-line separated, document
    order) into ``css``; inline classic scripts likewise into ``js``.
    External stylesheets and ``<script src>`` tags found in the head are
    kept at the top of ``html`` so the page still loads them. Head
    metadata (title, meta) is dropped.

    Args:
        page: Full HTML page or fragment.

    Returns:
        Bundle with the split sources.
    """
    soup = BeautifulSoup(page, "html.parser")

    css_parts = []
    for style in soup.find_all("style"):
        css_parts.append((style.string or "").strip())
        style.decompose()

    js_parts = []
    for script in soup.find_all("script"):
        if not _is_inline_javascript(script):
            continue
        js_parts.append((script.string or "").strip())
        script.decompose()

    head_refs = []
    if soup.head is not None:
        for tag in soup.head.find_all(["link", "script"]):
            if tag.name == "link" and "stylesheet" not in (tag.get("rel") or []):
                continue
            head_refs.append(str(tag))
        soup.head.decompose()

    if soup.body is not None:
        body_html = soup.body.decode_contents()
    else:
        for item in list(soup.contents):
            if isinstance(item, Doctype):
                item.extract()
        for tag in soup.find_all(["html", "title", "meta"]):
            if tag.name == "html":
                tag.unwrap()
            else:
                tag.decompose()
        body_html = soup.decode_contents()

    html_parts = head_refs + [body_html.strip()]
    return SourceBundle(
        html="\n".join(p for p in html_parts if p),
        css="\n\n".join(p for p in css_parts if p),
        js="\n\n".join(p for p in js_parts if p),
    )


def import_page(path: Path) -> SourceBundle:
    """Read a standalone HTML file and split it into a bundle.

    Raises:
        PreviewboxError: If the file cannot be read.
    """
    path = Path(path)
    if not path.is_file():
        raise PreviewboxError(f"File not found: {path}")
    try:
        page = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise PreviewboxError(f"Cannot read {path}: {e}") from e
    return split_document(page)
