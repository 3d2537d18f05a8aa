"""
Text normalization and segmentation into comparable units.

- normalize_document: canonical paragraph layout (idempotent).
- segment_into_lines: one unit per line, blank lines kept as paragraph markers.
- segment_into_sentences: paragraph-aware sentence units, clause headers kept verbatim.
"""

from __future__ import annotations

import re
from typing import List, Optional

from .models import Unit

_PARAGRAPH_RE = re.compile(r"\n\s*\n")
_HEADER_RE = re.compile(r"^(Clause|Section|Article)\s+\d+", re.IGNORECASE)
_SENTENCE_BOUNDARY_RE = re.compile(r"(?<=[.!?])\s+(?=[A-Z])")

MIN_SENTENCE_LEN = 10


def _unify_line_endings(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n")


def _format_paragraphs(text: str) -> str:
    text = _unify_line_endings(text)
    text = text.replace("\t", " ").replace("\u00a0", " ").strip()

    paragraphs = []
    for para in _PARAGRAPH_RE.split(text):
        lines = [ln.strip() for ln in para.split("\n")]
        lines = [ln for ln in lines if ln]
        if lines:
            paragraphs.append("\n".join(lines))
    return "\n\n".join(paragraphs)


def _basic_formatting(text: str) -> str:
    text = _unify_line_endings(text)
    text = re.sub(r"[ \t]{3,}", " ", text)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()


def normalize_document(raw_text: Optional[str], *, verbose: bool = False) -> str:
    """
    Canonical form used for comparison:
    LF line endings, tabs/NBSP as spaces, trimmed non-empty lines inside
    paragraphs, exactly one blank line between paragraphs.

    Formatting is best-effort: if the paragraph pass fails, a simpler
    whitespace cleanup is returned instead.
    """
    if not raw_text:
        return ""
    if isinstance(raw_text, bytes):
        raw_text = raw_text.decode("utf-8", errors="replace")

    try:
        return _format_paragraphs(raw_text)
    except (TypeError, ValueError, AttributeError) as e:
        if verbose:
            print(f"[WARN] Paragraph formatting failed ({type(e).__name__}: {e}); using basic normalization")
        return _basic_formatting(str(raw_text))


def segment_into_lines(text: Optional[str]) -> List[Unit]:
    """Split strictly on newlines. Blank lines stay as empty units."""
    if not text:
        return []
    return [Unit(text=line, index=i) for i, line in enumerate(text.split("\n"))]


def _is_header_line(line: str) -> bool:
    return bool(_HEADER_RE.match(line)) and not _SENTENCE_BOUNDARY_RE.search(line)


def _split_sentences(block: str, min_len: int) -> List[str]:
    out = []
    for piece in _SENTENCE_BOUNDARY_RE.split(block):
        piece = piece.strip()
        if len(piece) >= min_len:
            out.append(piece)
    return out


def segment_into_sentences(text: Optional[str], *, min_len: int = MIN_SENTENCE_LEN) -> List[Unit]:
    """
    Paragraph-aware sentence segmentation.

    A line that is only a clause/section/article header ("Clause 4", "Section 2: Term")
    becomes its own unit verbatim. Other text is split where '.', '!' or '?' is
    followed by whitespace and an uppercase letter; pieces shorter than min_len
    are dropped as noise.
    """
    if not text:
        return []

    texts: List[str] = []
    for para in _PARAGRAPH_RE.split(_unify_line_endings(text)):
        if not para.strip():
            continue

        buf: List[str] = []
        for line in para.split("\n"):
            stripped = line.strip()
            if _is_header_line(stripped):
                if buf:
                    texts.extend(_split_sentences("\n".join(buf), min_len))
                    buf = []
                texts.append(stripped)
            else:
                buf.append(line)
        if buf:
            texts.extend(_split_sentences("\n".join(buf), min_len))

    return [Unit(text=t, index=i) for i, t in enumerate(texts)]
