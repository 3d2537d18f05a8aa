"""Shared pytest fixtures for the ClauseDiff test suite."""

import pytest

from clausediff.config import ClauseDiffConfig
from clausediff.models import ChangeEntry, NarrativeAnalysis, Unit


# ---------------------------------------------------------------------------
# Environment isolation (autouse)
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def no_llm_key(monkeypatch):
    """Never reach a real LLM from tests."""
    monkeypatch.delenv("OPENROUTER_API_KEY", raising=False)
    yield


# ---------------------------------------------------------------------------
# Sample data fixtures
# ---------------------------------------------------------------------------

ORIGINAL_AGREEMENT = """SAMPLE LEGAL AGREEMENT - ORIGINAL VERSION

This Agreement is entered into between Party A and Party B.

Clause 1: Payment Terms
Payment shall be made within 30 days of invoice date.

Clause 2: Termination
Either party may terminate this agreement with 60 days written notice.

Clause 3: Liability
Each party shall be liable for their own actions and omissions.

Clause 4: Confidentiality
All confidential information shall be protected for a period of 2 years.
"""

REVISED_AGREEMENT = """SAMPLE LEGAL AGREEMENT - ORIGINAL VERSION

This Agreement is entered into between Party A and Party B.

Clause 1: Payment Terms
Payment shall be made within 45 days of invoice date.

Clause 2: Termination
Either party may terminate this agreement with 60 days written notice.

Clause 4: Confidentiality
All confidential information shall be protected for a period of 2 years.

Clause 5: Governing Law
This agreement shall be governed by the laws of California.
"""


@pytest.fixture
def original_agreement():
    return ORIGINAL_AGREEMENT


@pytest.fixture
def revised_agreement():
    return REVISED_AGREEMENT


@pytest.fixture
def quiet_config():
    """Default config with the LLM switched off."""
    cfg = ClauseDiffConfig.default()
    cfg.llm.enabled = False
    return cfg


@pytest.fixture
def sample_entries():
    """One entry of every type, in document order."""
    removed = ChangeEntry.removed(Unit("The tenant pays rent monthly in advance.", 1))
    added = ChangeEntry.added(Unit("The tenant pays rent weekly in advance.", 1))
    return [
        ChangeEntry.unchanged(Unit("Clause 1: Rent", 0), Unit("Clause 1: Rent", 0)),
        ChangeEntry.modified(removed, added, 0.6),
        ChangeEntry.removed(Unit("The landlord repairs the roof.", 2)),
        ChangeEntry.added(Unit("A security deposit of one month applies.", 2)),
    ]


class StubAnalyzer:
    """NarrativeAnalyzer returning a fixed result and recording its calls."""

    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.calls = []

    def try_analyze(self, changes, statistics):
        self.calls.append((changes, statistics))
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def llm_narrative():
    return NarrativeAnalysis(
        summary="Payment window extended.",
        significance="medium",
        recommendations=["Confirm cash-flow impact"],
        overall_assessment="Moderate commercial change.",
        source="llm",
    )


@pytest.fixture
def stub_analyzer_factory():
    return StubAnalyzer
