"""
Text diff engine.

Key idea:
- Align two unit sequences with an LCS whose equality test is a strict
  similarity oracle (exact / formatting-only / near-identical word sets).
- Backtrack into an ordered edit script (unchanged/added/removed).
- Merge adjacent removed+added pairs that share enough words into "modified".

The DP table is O(n*m) in time and memory, which is fine for documents with
up to a few thousand units; larger inputs need chunking first.
"""

from __future__ import annotations

import math
from collections import Counter
from typing import Callable, List, Optional, Sequence, Union

from .models import ChangeEntry, ChangeType, Statistics, Unit
from .utils import jaccard_similarity, norm_key, strip_formatting_noise

ALIGNMENT_THRESHOLD = 0.95
MODIFICATION_THRESHOLD = 0.4
SHORT_UNIT_LEN = 20

UnitLike = Union[Unit, str, None]
Equivalence = Callable[[Unit, Unit], bool]


def _text_of(u: UnitLike) -> str:
    if u is None:
        return ""
    if isinstance(u, Unit):
        return u.text
    return u


def are_equivalent(
    a: UnitLike,
    b: UnitLike,
    *,
    threshold: float = ALIGNMENT_THRESHOLD,
    short_unit_len: int = SHORT_UNIT_LEN,
) -> bool:
    """
    Alignment equality between two units:
    - both empty -> equal, exactly one empty -> different
    - equal after lowercasing and dropping punctuation
    - equal after removing whitespace/line-ending noise
    - short units (< short_unit_len chars) need exact normalized equality
    - otherwise word-set Jaccard similarity must exceed threshold
    """
    t1 = _text_of(a).strip()
    t2 = _text_of(b).strip()
    if not t1 and not t2:
        return True
    if not t1 or not t2:
        return False

    k1 = norm_key(t1)
    k2 = norm_key(t2)
    if k1 == k2:
        return True

    if strip_formatting_noise(t1) == strip_formatting_noise(t2):
        return True

    if len(t1) < short_unit_len or len(t2) < short_unit_len:
        return False

    return jaccard_similarity(k1, k2) > threshold


def align_units(
    seq_a: Sequence[Unit],
    seq_b: Sequence[Unit],
    *,
    equivalent: Optional[Equivalence] = None,
) -> List[ChangeEntry]:
    """
    LCS alignment of two unit sequences.

    Returns unchanged/added/removed entries in document order. On backtracking
    a match is preferred; otherwise Added wins when dp[i][j-1] >= dp[i-1][j].
    """
    eq = equivalent or are_equivalent
    m, n = len(seq_a), len(seq_b)

    dp = [[0] * (n + 1) for _ in range(m + 1)]
    for i in range(1, m + 1):
        a = seq_a[i - 1]
        prev, row = dp[i - 1], dp[i]
        for j in range(1, n + 1):
            if eq(a, seq_b[j - 1]):
                row[j] = prev[j - 1] + 1
            else:
                row[j] = prev[j] if prev[j] >= row[j - 1] else row[j - 1]

    out: List[ChangeEntry] = []
    i, j = m, n
    while i > 0 or j > 0:
        if i > 0 and j > 0 and eq(seq_a[i - 1], seq_b[j - 1]):
            out.append(ChangeEntry.unchanged(seq_a[i - 1], seq_b[j - 1]))
            i -= 1
            j -= 1
        elif j > 0 and (i == 0 or dp[i][j - 1] >= dp[i - 1][j]):
            out.append(ChangeEntry.added(seq_b[j - 1]))
            j -= 1
        else:
            out.append(ChangeEntry.removed(seq_a[i - 1]))
            i -= 1

    out.reverse()
    return out


def refine_changes(
    entries: Sequence[ChangeEntry],
    *,
    threshold: float = MODIFICATION_THRESHOLD,
) -> List[ChangeEntry]:
    """Turn removed+added neighbours into a single modified entry when similar enough."""
    refined: List[ChangeEntry] = []
    i = 0
    while i < len(entries):
        cur = entries[i]
        if (
            cur.type == ChangeType.REMOVED
            and i + 1 < len(entries)
            and entries[i + 1].type == ChangeType.ADDED
        ):
            nxt = entries[i + 1]
            sim = jaccard_similarity(cur.original_text or "", nxt.comparison_text or "")
            if sim > threshold:
                refined.append(ChangeEntry.modified(cur, nxt, sim))
                i += 2
                continue

        refined.append(cur)
        i += 1

    return refined


def collapse_blank_runs(entries: Sequence[ChangeEntry]) -> List[ChangeEntry]:
    """Drop a blank entry that directly follows a blank entry of the same type."""
    out: List[ChangeEntry] = []
    for e in entries:
        if out and not e.text.strip():
            prev = out[-1]
            if not prev.text.strip() and prev.type == e.type:
                continue
        out.append(e)
    return out


def _half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def compute_statistics(entries: Sequence[ChangeEntry]) -> Statistics:
    """Counts per change type; change_percentage is rounded half up, 0 for an empty diff."""
    counts = Counter(e.type for e in entries)
    total = len(entries)
    changed = counts[ChangeType.ADDED] + counts[ChangeType.REMOVED] + counts[ChangeType.MODIFIED]
    return Statistics(
        total=total,
        unchanged=counts[ChangeType.UNCHANGED],
        added=counts[ChangeType.ADDED],
        removed=counts[ChangeType.REMOVED],
        modified=counts[ChangeType.MODIFIED],
        change_percentage=_half_up(100 * changed / total) if total else 0,
    )


def diff_units(
    seq_a: Sequence[Unit],
    seq_b: Sequence[Unit],
    *,
    alignment_threshold: float = ALIGNMENT_THRESHOLD,
    modification_threshold: float = MODIFICATION_THRESHOLD,
    short_unit_len: int = SHORT_UNIT_LEN,
) -> List[ChangeEntry]:
    """Align, then refine."""

    def eq(a: Unit, b: Unit) -> bool:
        return are_equivalent(a, b, threshold=alignment_threshold, short_unit_len=short_unit_len)

    raw = align_units(seq_a, seq_b, equivalent=eq)
    return refine_changes(raw, threshold=modification_threshold)
