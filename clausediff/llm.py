"""
Narrative analysis of a diff using OpenRouter (OpenAI SDK compatible) + Pydantic parsing.

The analyzer never raises for network or parsing problems: try_analyze returns
None and the caller substitutes the rule-based fallback (see report.py).
"""

from __future__ import annotations

import json
from typing import Dict, List, Optional, Protocol

from openai import OpenAI, OpenAIError
from pydantic import ValidationError

from .config import LLMConfig
from .models import NarrativeAnalysis, Statistics
from .utils import extract_first_json_object, truncate


class NarrativeAnalyzer(Protocol):
    def try_analyze(self, changes: List[Dict[str, str]], statistics: Statistics) -> Optional[NarrativeAnalysis]:
        ...


class OpenRouterNarrativeAnalyzer:
    """
    Summarizes the changes between two document versions via OpenRouter.
    Output language is enforced via system prompt.
    """

    def __init__(
        self,
        *,
        api_key: str,
        model: str,
        base_url: str = "https://openrouter.ai/api/v1",
        site_url: str = "",
        site_name: str = "",
        output_language: str = "English",
        timeout_sec: float = 30.0,
        max_retries: int = 1,
        verbose: bool = True,
    ):
        self.client = OpenAI(base_url=base_url, api_key=api_key, timeout=timeout_sec, max_retries=max_retries)
        self.model = model
        self.site_url = site_url
        self.site_name = site_name
        self.output_language = output_language
        self.verbose = verbose

    @classmethod
    def from_config(cls, cfg: LLMConfig, *, verbose: bool = True) -> "OpenRouterNarrativeAnalyzer":
        return cls(
            api_key=cfg.resolved_api_key(),
            model=cfg.model,
            base_url=cfg.base_url,
            site_url=cfg.site_url,
            site_name=cfg.site_name,
            output_language=cfg.output_language,
            timeout_sec=cfg.timeout_sec,
            max_retries=cfg.max_retries,
            verbose=verbose,
        )

    def _messages(self, changes: List[Dict[str, str]], statistics: Statistics) -> List[Dict[str, str]]:
        system = (
            "You are a legal document analysis expert comparing two versions of a legal document.\n"
            "Explain the legal implications and risk of the listed changes.\n"
            f"Write all text fields in {self.output_language}.\n"
            "Return ONLY valid JSON matching the schema.\n"
        )

        listed = "\n".join(f"{c['type'].upper()}: {truncate(c['text'], 600)}" for c in changes) or "(no changes)"

        user = (
            f"STATISTICS: {json.dumps(statistics.model_dump(by_alias=True))}\n\n"
            "KEY CHANGES IDENTIFIED:\n"
            f"{listed}\n\n"
            "JSON schema:\n"
            "{\n"
            '  "summary": string,\n'
            '  "significance": "high"|"medium"|"low",\n'
            '  "keyChanges": [\n'
            "    {\n"
            '      "type": "addition"|"removal"|"modification",\n'
            '      "description": string,\n'
            '      "legalImplication": string,\n'
            '      "risk": "high"|"medium"|"low"\n'
            "    }\n"
            "  ],\n"
            '  "recommendations": [string],\n'
            '  "overallAssessment": string\n'
            "}\n"
        )
        return [
            {"role": "system", "content": system},
            {"role": "user", "content": user},
        ]

    def try_analyze(self, changes: List[Dict[str, str]], statistics: Statistics) -> Optional[NarrativeAnalysis]:
        headers = {}
        if self.site_url:
            headers["HTTP-Referer"] = self.site_url
        if self.site_name:
            headers["X-Title"] = self.site_name

        if self.verbose:
            print(f"[LLM] Analyzing {len(changes)} changes with {self.model}...")

        try:
            completion = self.client.chat.completions.create(
                extra_headers=headers or None,
                model=self.model,
                messages=self._messages(changes, statistics),
            )
        except OpenAIError as e:
            if self.verbose:
                print(f"[WARN] Narrative analysis request failed: {type(e).__name__}: {e}")
            return None

        if not completion.choices:
            if self.verbose:
                print("[WARN] Narrative analysis returned no choices")
            return None
        content = completion.choices[0].message.content or ""

        try:
            j = extract_first_json_object(content)
            analysis = NarrativeAnalysis.model_validate_json(j)
        except (ValueError, ValidationError) as e:
            if self.verbose:
                print(f"[WARN] Could not parse narrative analysis ({type(e).__name__}). Raw preview: {content[:200]!r}")
            return None

        return analysis.model_copy(update={"source": "llm"})
