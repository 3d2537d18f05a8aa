"""
High-level pipeline:
- normalize both texts
- segment into lines and/or sentences
- align + refine each mode, compute statistics
- narrative analysis via LLM, rule-based fallback otherwise
- write JSON (and optionally PDF) reports
"""

from __future__ import annotations

import os
from typing import Optional, Sequence

from .config import ClauseDiffConfig, DiffConfig
from .extract import extract_pair
from .llm import NarrativeAnalyzer, OpenRouterNarrativeAnalyzer
from .models import ComparisonResult, DiffResult
from .report import (
    analyze_with_fallback,
    build_result,
    save_comparison_json,
    save_comparison_report_pdf,
)
from .segment import normalize_document, segment_into_lines, segment_into_sentences
from .textdiff import collapse_blank_runs, compute_statistics, diff_units

MODES = ("line", "sentence")


def diff_texts(original: str, comparison: str, *, mode: str, diff_cfg: DiffConfig) -> DiffResult:
    """Run one comparison mode over two already-normalized texts."""
    if mode == "line":
        seq_a = segment_into_lines(original)
        seq_b = segment_into_lines(comparison)
    elif mode == "sentence":
        seq_a = segment_into_sentences(original, min_len=diff_cfg.min_sentence_len)
        seq_b = segment_into_sentences(comparison, min_len=diff_cfg.min_sentence_len)
    else:
        raise ValueError(f"Unknown comparison mode '{mode}'. Expected one of {MODES}")

    entries = diff_units(
        seq_a,
        seq_b,
        alignment_threshold=diff_cfg.alignment_threshold,
        modification_threshold=diff_cfg.modification_threshold,
        short_unit_len=diff_cfg.short_unit_len,
    )
    if mode == "line" and diff_cfg.collapse_blank_lines:
        entries = collapse_blank_runs(entries)

    return DiffResult(mode=mode, entries=entries, statistics=compute_statistics(entries))


def build_analyzer(cfg: ClauseDiffConfig) -> Optional[NarrativeAnalyzer]:
    """LLM analyzer when enabled and a key is available, else None (fallback only)."""
    if not cfg.llm.enabled:
        return None
    if not cfg.llm.has_api_key():
        if cfg.runtime.verbose:
            print(f"[INFO] No API key in '{cfg.llm.api_key_env}'; narrative analysis will use the fallback")
        return None
    return OpenRouterNarrativeAnalyzer.from_config(cfg.llm, verbose=cfg.runtime.verbose)


def compare_texts(
    original_text: Optional[str],
    comparison_text: Optional[str],
    *,
    config: Optional[ClauseDiffConfig] = None,
    analyzer: Optional[NarrativeAnalyzer] = None,
    modes: Optional[Sequence[str]] = None,
) -> ComparisonResult:
    """
    Compare two already-extracted texts.

    Runs every requested mode (default: config.diff.modes, i.e. line and sentence),
    then attaches a narrative for the primary mode (line when requested).
    An explicit analyzer overrides the one built from config.
    """
    cfg = config or ClauseDiffConfig.default()
    verbose = cfg.runtime.verbose
    modes = list(dict.fromkeys(modes or cfg.diff.modes))
    if not modes:
        raise ValueError("At least one comparison mode is required")

    original = normalize_document(original_text, verbose=verbose)
    comparison = normalize_document(comparison_text, verbose=verbose)

    if verbose:
        print(f"[INFO] Normalized lengths: original={len(original)} comparison={len(comparison)}")

    diffs = {}
    for mode in modes:
        diffs[mode] = diff_texts(original, comparison, mode=mode, diff_cfg=cfg.diff)
        if verbose:
            s = diffs[mode].statistics
            print(
                f"[INFO] {mode}: total={s.total} unchanged={s.unchanged} added={s.added} "
                f"removed={s.removed} modified={s.modified} ({s.change_percentage}% changed)"
            )

    primary = diffs["line"] if "line" in diffs else diffs["sentence"]

    if analyzer is None:
        analyzer = build_analyzer(cfg)

    narrative = analyze_with_fallback(
        analyzer,
        primary.entries,
        primary.statistics,
        max_changes=cfg.report.max_narrative_changes,
        max_key_changes=cfg.report.max_fallback_key_changes,
        verbose=verbose,
    )

    return build_result(
        original,
        comparison,
        narrative=narrative,
        line_diff=diffs.get("line"),
        sentence_diff=diffs.get("sentence"),
    )


def compare_documents(
    original_path: str,
    comparison_path: str,
    *,
    config: Optional[ClauseDiffConfig] = None,
    analyzer: Optional[NarrativeAnalyzer] = None,
    modes: Optional[Sequence[str]] = None,
) -> ComparisonResult:
    """Extract both documents (concurrently), then compare_texts."""
    cfg = config or ClauseDiffConfig.default()
    if cfg.runtime.verbose:
        print(f"[INFO] Extracting text: {original_path} | {comparison_path}")
    original_text, comparison_text = extract_pair(original_path, comparison_path, verbose=cfg.runtime.verbose)
    return compare_texts(original_text, comparison_text, config=cfg, analyzer=analyzer, modes=modes)


def run_from_config(cfg: ClauseDiffConfig) -> str:
    """Run the full pipeline for the configured documents and return the JSON report path."""
    if cfg.project is None:
        raise ValueError("Config has no 'project' section (original_doc / comparison_doc)")

    os.makedirs(cfg.project.output_dir, exist_ok=True)
    json_path = os.path.join(cfg.project.output_dir, "comparison.json")
    pdf_path = os.path.join(cfg.project.output_dir, "comparison_report.pdf")

    result = compare_documents(cfg.project.original_doc, cfg.project.comparison_doc, config=cfg)

    save_comparison_json(result, json_path)
    if cfg.report.write_pdf:
        save_comparison_report_pdf(
            result,
            pdf_path,
            title=cfg.report.title,
            truncate_chars=cfg.report.truncate_chars,
        )

    if cfg.runtime.verbose:
        print(f"[DONE] Comparison report: {json_path}")

    return json_path
