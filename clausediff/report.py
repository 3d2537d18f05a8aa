"""
Assemble comparison results, the rule-based narrative fallback, and report files.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from reportlab.lib.pagesizes import A4
from reportlab.lib.units import cm
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, PageBreak
from reportlab.lib.styles import getSampleStyleSheet

from .llm import NarrativeAnalyzer
from .models import (
    ChangeEntry,
    ChangeType,
    ComparisonResult,
    DiffResult,
    KeyChange,
    NarrativeAnalysis,
    Statistics,
)

_LEGAL_IMPLICATIONS = {
    ChangeType.ADDED: "New obligations or rights may have been introduced",
    ChangeType.REMOVED: "Previous obligations or rights may have been eliminated",
    ChangeType.MODIFIED: "Existing terms have been altered, potentially changing their legal effect",
}


def summarize_changes(entries: Sequence[ChangeEntry], limit: int = 10) -> List[Dict[str, str]]:
    """First `limit` non-unchanged entries, in order, reduced to {type, text}."""
    out = []
    for e in entries:
        if e.type == ChangeType.UNCHANGED:
            continue
        out.append({"type": e.type.value, "text": e.text})
        if len(out) >= limit:
            break
    return out


def _significance(statistics: Statistics) -> str:
    if statistics.change_percentage > 30:
        return "high"
    if statistics.change_percentage > 10:
        return "medium"
    return "low"


def _recommendations(statistics: Statistics) -> List[str]:
    recs = []
    if statistics.removed > 0:
        recs.append("Review removed clauses to ensure no critical obligations were eliminated")
    if statistics.added > 0:
        recs.append("Analyze new additions for potential impact on existing agreements")
    if statistics.modified > 0:
        recs.append("Carefully review modified clauses for changes in legal meaning")
    if statistics.change_percentage > 20:
        recs.append("Consider full legal review due to extensive changes")
    return recs or ["Document changes appear minimal - standard review recommended"]


def _assessment(significance: str) -> str:
    if significance == "high":
        return "Extensive modifications require careful legal review."
    if significance == "medium":
        return "Moderate changes warrant detailed examination."
    return "Minimal changes detected - routine review should suffice."


def fallback_analysis(
    entries: Sequence[ChangeEntry],
    statistics: Statistics,
    *,
    max_key_changes: int = 5,
) -> NarrativeAnalysis:
    """Deterministic narrative built only from the diff and its statistics."""
    significance = _significance(statistics)

    key_changes = [
        KeyChange(
            type=e.type.value,
            description=f"{e.type.value} in document text",
            legal_implication=_LEGAL_IMPLICATIONS.get(e.type, "Review required to assess legal impact"),
            risk="high" if e.type == ChangeType.REMOVED else "medium",
        )
        for e in entries
        if e.type != ChangeType.UNCHANGED
    ][:max_key_changes]

    return NarrativeAnalysis(
        summary=(
            f"Document comparison shows {statistics.change_percentage}% changes with "
            f"{statistics.added} additions, {statistics.removed} removals, "
            f"and {statistics.modified} modifications."
        ),
        significance=significance,
        key_changes=key_changes,
        recommendations=_recommendations(statistics),
        overall_assessment=f"The document has undergone {significance} level changes. {_assessment(significance)}",
        source="fallback",
    )


def analyze_with_fallback(
    analyzer: Optional[NarrativeAnalyzer],
    entries: Sequence[ChangeEntry],
    statistics: Statistics,
    *,
    max_changes: int = 10,
    max_key_changes: int = 5,
    verbose: bool = False,
) -> NarrativeAnalysis:
    """Ask the analyzer first; any missing result falls back to the rule-based narrative."""
    if analyzer is not None:
        try:
            analysis = analyzer.try_analyze(summarize_changes(entries, limit=max_changes), statistics)
        except Exception as e:
            if verbose:
                print(f"[WARN] Narrative analyzer raised {type(e).__name__}: {e}")
            analysis = None
        if analysis is not None:
            return analysis
        if verbose:
            print("[INFO] Using rule-based narrative fallback")
    return fallback_analysis(entries, statistics, max_key_changes=max_key_changes)


def build_result(
    original_text: str,
    comparison_text: str,
    *,
    narrative: NarrativeAnalysis,
    line_diff: Optional[DiffResult] = None,
    sentence_diff: Optional[DiffResult] = None,
) -> ComparisonResult:
    if line_diff is None and sentence_diff is None:
        raise ValueError("build_result needs at least one of line_diff, sentence_diff")
    return ComparisonResult(
        original_text=original_text,
        comparison_text=comparison_text,
        line_diff=line_diff,
        sentence_diff=sentence_diff,
        narrative=narrative,
    )


def save_comparison_json(result: ComparisonResult, out_path: str | Path) -> None:
    Path(out_path).write_text(
        json.dumps(result.to_dict(), ensure_ascii=False, indent=2),
        encoding="utf-8",
    )


def _escape_for_rl(s: str, truncate_chars: int = 4000) -> str:
    """Basic escaping for ReportLab Paragraph markup."""
    s = s.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")
    if truncate_chars and len(s) > truncate_chars:
        s = s[:truncate_chars] + "\n...[truncated]..."
    return s.replace("\n", "<br/>")


def save_comparison_report_pdf(
    result: ComparisonResult,
    out_pdf_path: str,
    *,
    title: str = "Document Comparison Report",
    truncate_chars: int = 4000,
) -> None:
    styles = getSampleStyleSheet()
    story = []

    story.append(Paragraph(f"<b>{_escape_for_rl(title)}</b>", styles["Title"]))
    story.append(Spacer(1, 0.5 * cm))

    for diff in (result.line_diff, result.sentence_diff):
        if diff is None:
            continue
        s = diff.statistics
        story.append(
            Paragraph(
                f"<b>{diff.mode.capitalize()} comparison:</b> {s.total} units, "
                f"{s.unchanged} unchanged, {s.added} added, {s.removed} removed, "
                f"{s.modified} modified ({s.change_percentage}% changed)",
                styles["Normal"],
            )
        )
    story.append(Spacer(1, 0.4 * cm))

    n = result.narrative
    story.append(Paragraph(f"<b>Significance:</b> {n.significance} ({n.source})", styles["Heading3"]))
    story.append(Paragraph(f"<b>Summary:</b> {_escape_for_rl(n.summary, truncate_chars)}", styles["Normal"]))
    story.append(Spacer(1, 0.2 * cm))
    for kc in n.key_changes:
        story.append(
            Paragraph(
                f"- <b>{_escape_for_rl(kc.type)}</b> [{kc.risk}]: {_escape_for_rl(kc.description)} "
                f"{_escape_for_rl(kc.legal_implication)}",
                styles["Normal"],
            )
        )
    story.append(Spacer(1, 0.2 * cm))
    for rec in n.recommendations:
        story.append(Paragraph(f"- {_escape_for_rl(rec)}", styles["Normal"]))
    story.append(Spacer(1, 0.2 * cm))
    story.append(
        Paragraph(f"<b>Assessment:</b> {_escape_for_rl(n.overall_assessment, truncate_chars)}", styles["Normal"])
    )
    story.append(PageBreak())

    changes = [e for e in result.entries if e.type != ChangeType.UNCHANGED]
    for i, e in enumerate(changes, start=1):
        header = f"<b>Change #{i}</b> - <b>Type:</b> {e.type.value}"
        if e.similarity is not None:
            header += f" - <b>Similarity:</b> {e.similarity:.2f}"
        story.append(Paragraph(header, styles["Heading3"]))

        if e.original_text:
            story.append(Paragraph("<b>Original text:</b>", styles["Normal"]))
            story.append(
                Paragraph(f"<font name='Courier'>{_escape_for_rl(e.original_text, truncate_chars)}</font>", styles["BodyText"])
            )
            story.append(Spacer(1, 0.2 * cm))

        if e.comparison_text:
            story.append(Paragraph("<b>New text:</b>", styles["Normal"]))
            story.append(
                Paragraph(f"<font name='Courier'>{_escape_for_rl(e.comparison_text, truncate_chars)}</font>", styles["BodyText"])
            )
            story.append(Spacer(1, 0.3 * cm))

    if not changes:
        story.append(Paragraph("No changes detected.", styles["Normal"]))

    doc = SimpleDocTemplate(
        out_pdf_path,
        pagesize=A4,
        leftMargin=2 * cm,
        rightMargin=2 * cm,
        topMargin=2 * cm,
        bottomMargin=2 * cm,
    )
    doc.build(story)
