"""
Utilities: normalization for matching, token similarity, and safe JSON extraction.
"""

from __future__ import annotations

import json
import re
from typing import Set

_NON_WORD_RE = re.compile(r"[^\w\s]", flags=re.UNICODE)
_WS_RE = re.compile(r"\s+")


def norm_key(s: str) -> str:
    """
    Stronger normalization for matching:
    lowercase, punctuation replaced by spaces, whitespace collapsed.
    """
    s = _NON_WORD_RE.sub(" ", s.lower())
    return _WS_RE.sub(" ", s).strip()


def strip_formatting_noise(s: str) -> str:
    """Remove line-ending/whitespace differences only (case and punctuation kept)."""
    s = s.replace("\r\n", "\n").replace("\r", "\n")
    return _WS_RE.sub(" ", s).strip()


def word_set(s: str) -> Set[str]:
    return set(s.split())


def jaccard_similarity(a: str, b: str) -> float:
    """
    |intersection| / |union| over whitespace-separated tokens.

    Two token-less strings score 1.0; one token-less string scores 0.0.
    """
    wa = word_set(a)
    wb = word_set(b)
    union = wa | wb
    if not union:
        return 1.0
    return len(wa & wb) / len(union)


def truncate(s: str, limit: int) -> str:
    if limit and len(s) > limit:
        return s[:limit] + "..."
    return s


def extract_first_json_object(text: str) -> str:
    """
    Extract the first JSON object from an LLM response.
    Handles markdown code fences and extra text.
    """
    t = text.strip()
    t = t.replace("```json", "```")
    t = t.replace("```", "")

    start = t.find("{")
    if start < 0:
        raise ValueError("No JSON object found.")

    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(t)):
        ch = t[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                cand = t[start:i + 1].strip()
                json.loads(cand)
                return cand

    raise ValueError("Unbalanced JSON braces.")
