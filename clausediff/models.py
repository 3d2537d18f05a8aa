"""
Data models: comparison units, change entries, statistics and the narrative schema.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class ChangeType(str, Enum):
    UNCHANGED = "unchanged"
    ADDED = "added"
    REMOVED = "removed"
    MODIFIED = "modified"


@dataclass(frozen=True)
class Unit:
    """One comparable chunk of a document (a line or a sentence)."""
    text: str
    index: int


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)


class ChangeEntry(_Frozen):
    """
    One row of the diff.

    unchanged/modified carry both texts, added has no original text,
    removed has no comparison text. Use the named constructors.
    """
    type: ChangeType
    original_text: Optional[str] = None
    comparison_text: Optional[str] = None
    original_index: Optional[int] = None
    comparison_index: Optional[int] = None
    similarity: Optional[float] = None

    @classmethod
    def unchanged(cls, a: Unit, b: Unit) -> "ChangeEntry":
        return cls(
            type=ChangeType.UNCHANGED,
            original_text=a.text,
            comparison_text=b.text,
            original_index=a.index,
            comparison_index=b.index,
        )

    @classmethod
    def added(cls, b: Unit) -> "ChangeEntry":
        return cls(type=ChangeType.ADDED, comparison_text=b.text, comparison_index=b.index)

    @classmethod
    def removed(cls, a: Unit) -> "ChangeEntry":
        return cls(type=ChangeType.REMOVED, original_text=a.text, original_index=a.index)

    @classmethod
    def modified(cls, removed: "ChangeEntry", added: "ChangeEntry", similarity: float) -> "ChangeEntry":
        return cls(
            type=ChangeType.MODIFIED,
            original_text=removed.original_text,
            comparison_text=added.comparison_text,
            original_index=removed.original_index,
            comparison_index=added.comparison_index,
            similarity=similarity,
        )

    @property
    def text(self) -> str:
        """Text shown for this change (the comparison side when present)."""
        if self.comparison_text is not None:
            return self.comparison_text
        return self.original_text or ""


class Statistics(_Frozen):
    total: int = 0
    unchanged: int = 0
    added: int = 0
    removed: int = 0
    modified: int = 0
    change_percentage: int = 0

    @property
    def changed(self) -> int:
        return self.added + self.removed + self.modified


class DiffResult(_Frozen):
    """Entries and statistics for one comparison mode."""
    mode: Literal["line", "sentence"]
    entries: Tuple[ChangeEntry, ...] = ()
    statistics: Statistics = Field(default_factory=Statistics)


Significance = Literal["high", "medium", "low"]


def _coerce_level(v: Any) -> Any:
    if isinstance(v, str):
        v = v.strip().lower()
        if v in ("high", "medium", "low"):
            return v
        return "medium"
    return v


class KeyChange(_Frozen):
    type: str = Field("", description="added|removed|modified (or addition|removal|modification).")
    description: str = Field("", description="What changed.")
    legal_implication: str = Field("", description="Legal significance of this change.")
    risk: Significance = Field("medium", description="high|medium|low")

    @field_validator("risk", mode="before")
    @classmethod
    def _risk(cls, v: Any) -> Any:
        return _coerce_level(v)


class NarrativeAnalysis(_Frozen):
    """Human-readable interpretation of a diff (LLM output or rule-based fallback)."""
    summary: str = Field("", description="Brief overview of the main changes.")
    significance: Significance = Field("low", description="high|medium|low")
    key_changes: List[KeyChange] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    overall_assessment: str = Field("", description="Overall assessment of the changes.")
    source: Literal["llm", "fallback"] = "llm"

    @field_validator("significance", mode="before")
    @classmethod
    def _significance(cls, v: Any) -> Any:
        return _coerce_level(v)

    @field_validator("key_changes", mode="before")
    @classmethod
    def _key_changes(cls, v: Any) -> Any:
        if v is None:
            return []
        if isinstance(v, list):
            return [{"description": item} if isinstance(item, str) else item for item in v]
        return v

    @field_validator("recommendations", mode="before")
    @classmethod
    def _recommendations(cls, v: Any) -> Any:
        if v is None:
            return []
        if isinstance(v, str):
            return [v]
        return v


class ComparisonResult(_Frozen):
    """Top-level output of one comparison. Plain data, safe to serialize."""
    original_text: str
    comparison_text: str
    line_diff: Optional[DiffResult] = None
    sentence_diff: Optional[DiffResult] = None
    narrative: NarrativeAnalysis
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def primary(self) -> DiffResult:
        """Line diff when computed, otherwise the sentence diff."""
        diff = self.line_diff if self.line_diff is not None else self.sentence_diff
        if diff is None:
            raise ValueError("ComparisonResult has no diff")
        return diff

    @property
    def entries(self) -> Tuple[ChangeEntry, ...]:
        return self.primary.entries

    @property
    def statistics(self) -> Statistics:
        return self.primary.statistics

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)
