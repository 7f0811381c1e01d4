"""Plain-text sharing and PDF filename helpers for a generated poem."""

import re
from typing import Optional

from photoverse.schemas.poem import Poem, PoemResponse

PDF_SUFFIX = "-photo-verse.pdf"


def format_share_text(poem: Poem, author: Optional[str] = None) -> str:
    """Title, blank line, poem, and a "- author" signature when given."""
    text = f"{poem.title}\n\n{poem.poem}"
    if author and author.strip():
        text += f"\n\n- {author.strip()}"
    return text


def pdf_filename(title: str) -> str:
    base = re.sub(r"\s", "_", title)
    return f"{base or 'poem'}{PDF_SUFFIX}"


def build_poem_response(poem: Poem, author: Optional[str] = None) -> PoemResponse:
    return PoemResponse(
        title=poem.title,
        poem=poem.poem,
        share_text=format_share_text(poem, author),
        download_filename=pdf_filename(poem.title),
    )
