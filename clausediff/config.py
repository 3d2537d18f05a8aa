"""
YAML-driven configuration for ClauseDiff.

Design choice:
- Put all parameters in YAML, except secrets (API key), which should come from an env var.
- Every section has defaults, so library callers can use ClauseDiffConfig.default().
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Literal, Optional

import os
import yaml
from pydantic import BaseModel, Field, field_validator

Mode = Literal["line", "sentence"]


class ProjectConfig(BaseModel):
    original_doc: str
    comparison_doc: str
    output_dir: str = "comparison_output"


class LLMConfig(BaseModel):
    enabled: bool = True
    provider: Literal["openrouter"] = "openrouter"
    api_key_env: str = "OPENROUTER_API_KEY"
    api_key: Optional[str] = None  # discouraged; prefer env
    base_url: str = "https://openrouter.ai/api/v1"
    model: str = "google/gemini-2.5-flash-lite"
    site_url: str = ""
    site_name: str = ""
    output_language: str = "English"
    timeout_sec: float = 30.0
    max_retries: int = 1

    def has_api_key(self) -> bool:
        return bool(self.api_key or os.getenv(self.api_key_env, ""))

    def resolved_api_key(self) -> str:
        if self.api_key:
            return self.api_key
        key = os.getenv(self.api_key_env, "")
        if not key:
            raise ValueError(
                f"Missing API key. Set env var '{self.api_key_env}' or provide llm.api_key in YAML."
            )
        return key


class DiffConfig(BaseModel):
    modes: List[Mode] = Field(default_factory=lambda: ["line", "sentence"])

    # alignment equality vs. "probably an edited version of"
    alignment_threshold: float = Field(0.95, ge=0.0, le=1.0)
    modification_threshold: float = Field(0.4, ge=0.0, le=1.0)

    short_unit_len: int = 20
    min_sentence_len: int = 10
    collapse_blank_lines: bool = False

    @field_validator("modes")
    @classmethod
    def _modes_not_empty(cls, v: List[str]) -> List[str]:
        if not v:
            raise ValueError("diff.modes must name at least one of 'line', 'sentence'")
        return list(dict.fromkeys(v))


class ReportConfig(BaseModel):
    title: str = "Document Comparison Report"
    max_narrative_changes: int = 10
    max_fallback_key_changes: int = 5
    truncate_chars: int = 4000
    write_pdf: bool = True


class RuntimeConfig(BaseModel):
    verbose: bool = True


class ClauseDiffConfig(BaseModel):
    project: Optional[ProjectConfig] = None
    llm: LLMConfig = Field(default_factory=LLMConfig)
    diff: DiffConfig = Field(default_factory=DiffConfig)
    report: ReportConfig = Field(default_factory=ReportConfig)
    runtime: RuntimeConfig = Field(default_factory=RuntimeConfig)

    @classmethod
    def default(cls) -> "ClauseDiffConfig":
        return cls(runtime=RuntimeConfig(verbose=False))

    @classmethod
    def from_yaml(cls, path: str | Path) -> "ClauseDiffConfig":
        path = Path(path)
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        return cls.model_validate(data)
