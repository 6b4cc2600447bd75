# mergemate/generator.py

import html as html_lib
import logging
import re
from typing import Any, Dict, List, Mapping, Optional, Sequence

import markdown
from bs4 import BeautifulSoup

from mergemate.errors import MergeEngineError, TemplateInputError
from mergemate.preview import build_preview_rows
from mergemate.resolver import MergeEngine


logger = logging.getLogger(__name__)

BODY_FORMATS = ("html", "text", "markdown")

_BLOCK_TAGS = ("h1", "h2", "h3", "h4", "h5", "h6", "p", "blockquote", "pre", "div", "table")


# ============================================================
# helpers
# ============================================================

def _wrap_in_html(text: str) -> str:
    """Wrap plain text in HTML formatting for an email body."""
    text = html_lib.escape(text.strip())
    html_content = text.replace("\n\n", "<br><br>").replace("\n", "<br>")
    return (
        "<html><body style='margin:0;padding:0;font-family:Arial,sans-serif;'>"
        f"{html_content}</body></html>"
    )


def markdown_to_html(text: str) -> str:
    return markdown.markdown(text)


def html_to_text(html: str) -> str:
    """
    Turn an HTML body into readable plain text:
    - headings and paragraphs on their own line with a blank line after
    - list items as '• item'
    - <br> kept as line breaks
    """
    soup = BeautifulSoup(html, "html.parser")
    root = soup.body or soup

    for br in root.find_all("br"):
        br.replace_with("\n")

    lines: List[str] = []
    inline: List[str] = []

    def _clean(raw: str) -> str:
        return "\n".join(" ".join(p.split()) for p in raw.split("\n")).strip()

    def _flush() -> None:
        txt = _clean("".join(inline))
        inline.clear()
        if txt:
            lines.append(txt)
            lines.append("")

    for node in root.children:
        name = getattr(node, "name", None)
        if not name:
            inline.append(str(node))
        elif name in ("ul", "ol"):
            _flush()
            for li in node.find_all("li", recursive=False):
                li_text = " ".join(li.get_text(" ").split()).strip()
                if li_text:
                    lines.append(f"• {li_text}")
            lines.append("")
        elif name in _BLOCK_TAGS:
            _flush()
            txt = _clean(node.get_text(""))
            if txt:
                lines.append(txt)
                lines.append("")
        else:
            inline.append(node.get_text(""))
    _flush()

    text = "\n".join(lines)
    text = re.sub(r"\n{3,}", "\n\n", text)
    text = re.sub(r"[ \t]{2,}", " ", text)
    return text.strip()


def _to_html(body: str, body_format: str) -> str:
    if body_format == "markdown":
        return markdown_to_html(body)
    if body_format == "text":
        return _wrap_in_html(body)
    return body


# ============================================================
# public API
# ============================================================

def compose_messages(
    engine: MergeEngine,
    records: Sequence[Mapping[str, Any]],
    *,
    subject_template: str,
    body_template: str,
    body_format: str = "html",
    options: Optional[Any] = None,
    dry_run: bool = False,
) -> List[Dict[str, Any]]:
    """
    Render subject and body for every eligible record.

    Nothing is sent; each message is a dict with ``to``, ``subject``,
    ``html`` and ``text``. With ``dry_run`` only ``to`` and ``subject``
    are returned.
    """
    if body_format not in BODY_FORMATS:
        raise TemplateInputError(f"Unsupported body format: {body_format}")

    preview_rows = build_preview_rows(
        engine,
        records,
        body_template,
        subject_template,
        options,
        only_recipients=True,
    )

    messages: List[Dict[str, Any]] = []

    for p in preview_rows:
        if p["error"] or p["body"] is None:
            continue

        message: Dict[str, Any] = {"id": p["id"], "to": p["email"], "subject": p["subject"]}

        if not dry_run:
            try:
                body_html = _to_html(p["body"], body_format)
                message["html"] = body_html
                message["text"] = html_to_text(body_html)
            except Exception as e:
                logger.warning("Could not build body for %s: %s", p["email"], e)
                raise MergeEngineError(f"Failed to compose message for {p['email']}") from e

        messages.append(message)

    logger.info("Composed %d messages", len(messages))
    return messages
