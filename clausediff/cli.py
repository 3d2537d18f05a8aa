"""
Command-line interface.

Usage:
  clausediff run --config clausediff.yaml
  clausediff compare original.pdf revised.docx [--mode line|sentence|both] [--output result.json]
"""

from __future__ import annotations

import argparse
import json
import sys
from contextlib import redirect_stdout

from .config import ClauseDiffConfig
from .pipeline import compare_documents, run_from_config

_MODE_CHOICES = {
    "line": ["line"],
    "sentence": ["sentence"],
    "both": ["line", "sentence"],
}


def main(argv=None) -> None:
    parser = argparse.ArgumentParser(prog="clausediff", description="Line/sentence diff for legal documents + narrative analysis.")
    sub = parser.add_subparsers(dest="cmd", required=True)

    run_p = sub.add_parser("run", help="Run ClauseDiff using a YAML config.")
    run_p.add_argument("--config", required=True, help="Path to YAML config file.")

    cmp_p = sub.add_parser("compare", help="Compare two documents and print the JSON result.")
    cmp_p.add_argument("original", help="Original document (.pdf, .docx, .txt).")
    cmp_p.add_argument("comparison", help="Revised document (.pdf, .docx, .txt).")
    cmp_p.add_argument("--config", help="Optional YAML config file.")
    cmp_p.add_argument("--mode", choices=sorted(_MODE_CHOICES), default=None, help="Comparison mode(s).")
    cmp_p.add_argument("--output", help="Write the JSON result here instead of stdout.")
    cmp_p.add_argument("--no-llm", action="store_true", help="Skip the LLM and use the rule-based narrative.")
    cmp_p.add_argument("--verbose", action="store_true", help="Print progress lines (to stderr when the result goes to stdout).")

    args = parser.parse_args(argv)

    if args.cmd == "run":
        cfg = ClauseDiffConfig.from_yaml(args.config)
        run_from_config(cfg)
    elif args.cmd == "compare":
        cfg = ClauseDiffConfig.from_yaml(args.config) if args.config else ClauseDiffConfig.default()
        if args.no_llm:
            cfg.llm.enabled = False
        if args.verbose:
            cfg.runtime.verbose = True
        modes = _MODE_CHOICES[args.mode] if args.mode else None

        if args.output:
            result = compare_documents(args.original, args.comparison, config=cfg, modes=modes)
        else:
            # stdout carries the JSON result
            with redirect_stdout(sys.stderr):
                result = compare_documents(args.original, args.comparison, config=cfg, modes=modes)
        payload = json.dumps(result.to_dict(), ensure_ascii=False, indent=2)
        if args.output:
            with open(args.output, "w", encoding="utf-8") as fh:
                fh.write(payload)
        else:
            sys.stdout.write(payload + "\n")
