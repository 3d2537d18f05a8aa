"""Tests for clausediff/textdiff.py: oracle, LCS alignment, refinement, statistics."""

import random

import pytest
from pydantic import ValidationError

from clausediff.models import ChangeEntry, ChangeType, Unit
from clausediff.textdiff import (
    ALIGNMENT_THRESHOLD,
    MODIFICATION_THRESHOLD,
    align_units,
    are_equivalent,
    collapse_blank_runs,
    compute_statistics,
    diff_units,
    refine_changes,
)


def units(*texts):
    return [Unit(t, i) for i, t in enumerate(texts)]


def exact(a, b):
    return a.text == b.text


def assert_well_formed(entries):
    for e in entries:
        if e.type in (ChangeType.UNCHANGED, ChangeType.MODIFIED):
            assert e.original_text is not None and e.comparison_text is not None
        elif e.type == ChangeType.ADDED:
            assert e.original_text is None and e.comparison_text is not None
        else:
            assert e.comparison_text is None and e.original_text is not None
        assert (e.similarity is not None) == (e.type == ChangeType.MODIFIED)


def assert_complete(entries, seq_a, seq_b):
    orig = sorted(e.original_index for e in entries if e.original_index is not None)
    comp = sorted(e.comparison_index for e in entries if e.comparison_index is not None)
    assert orig == [u.index for u in seq_a]
    assert comp == [u.index for u in seq_b]


class TestThresholds:

    def test_alignment_threshold(self):
        assert ALIGNMENT_THRESHOLD == 0.95

    def test_modification_threshold(self):
        assert MODIFICATION_THRESHOLD == 0.4


class TestAreEquivalent:

    def test_both_empty(self):
        assert are_equivalent(None, None)
        assert are_equivalent("", "   ")
        assert are_equivalent(Unit("", 0), None)

    def test_one_empty(self):
        assert not are_equivalent(None, "Payment terms")
        assert not are_equivalent(Unit("Payment terms", 0), Unit("  ", 3))

    def test_case_and_punctuation_ignored(self):
        assert are_equivalent("Payment Terms:", "payment terms")

    def test_whitespace_and_line_breaks_ignored(self):
        assert are_equivalent("Payment  shall be\r\nmade", "Payment shall be made")

    def test_short_units_need_exact_match(self):
        assert not are_equivalent("Clause 1", "Clause 2")

    def test_near_identical_long_units(self):
        a = " ".join(f"word{i}" for i in range(20))
        assert are_equivalent(a, a + " extra")  # 20/21 > 0.95

    def test_one_word_changed_is_not_equivalent(self):
        assert not are_equivalent(
            "The tenant shall pay rent monthly in advance",
            "The tenant shall pay rent weekly in advance",
        )

    def test_threshold_is_configurable(self):
        a = "The tenant shall pay rent monthly in advance"
        b = "The tenant shall pay rent weekly in advance"
        assert are_equivalent(a, b, threshold=0.7)


class TestAlignUnits:

    def test_identical(self):
        seq = units("alpha", "beta", "gamma")
        out = align_units(seq, seq, equivalent=exact)
        assert [e.type for e in out] == [ChangeType.UNCHANGED] * 3
        assert [(e.original_index, e.comparison_index) for e in out] == [(0, 0), (1, 1), (2, 2)]

    def test_both_empty(self):
        assert align_units([], []) == []

    def test_only_additions(self):
        out = align_units([], units("a", "b"), equivalent=exact)
        assert [e.type for e in out] == [ChangeType.ADDED, ChangeType.ADDED]
        assert [e.comparison_index for e in out] == [0, 1]

    def test_only_removals(self):
        out = align_units(units("a", "b"), [], equivalent=exact)
        assert [e.type for e in out] == [ChangeType.REMOVED, ChangeType.REMOVED]

    def test_tie_puts_removed_before_added(self):
        out = align_units(units("x"), units("y"), equivalent=exact)
        assert [e.type for e in out] == [ChangeType.REMOVED, ChangeType.ADDED]

    def test_substitution_in_the_middle(self):
        out = align_units(units("a", "b", "c"), units("a", "x", "c"), equivalent=exact)
        assert [(e.type, e.original_text, e.comparison_text) for e in out] == [
            (ChangeType.UNCHANGED, "a", "a"),
            (ChangeType.REMOVED, "b", None),
            (ChangeType.ADDED, None, "x"),
            (ChangeType.UNCHANGED, "c", "c"),
        ]

    def test_insertion_keeps_document_order(self):
        out = align_units(units("a", "c"), units("a", "b", "c"), equivalent=exact)
        assert [e.type for e in out] == [ChangeType.UNCHANGED, ChangeType.ADDED, ChangeType.UNCHANGED]
        assert out[1].comparison_text == "b"

    def test_default_oracle_used(self):
        out = align_units(units("Payment Terms:"), units("payment terms"))
        assert [e.type for e in out] == [ChangeType.UNCHANGED]

    @pytest.mark.parametrize("seed", range(8))
    def test_every_unit_appears_exactly_once(self, seed):
        rng = random.Random(seed)
        vocab = ["a", "b", "c", "d", ""]
        seq_a = units(*[rng.choice(vocab) for _ in range(rng.randint(0, 12))])
        seq_b = units(*[rng.choice(vocab) for _ in range(rng.randint(0, 12))])
        out = align_units(seq_a, seq_b, equivalent=exact)
        assert_well_formed(out)
        assert_complete(out, seq_a, seq_b)

    def test_lcs_length_is_maximal(self):
        seq_a = units("a", "b", "c", "d", "e")
        seq_b = units("b", "x", "d", "e", "a")
        out = align_units(seq_a, seq_b, equivalent=exact)
        assert sum(e.type == ChangeType.UNCHANGED for e in out) == 3


class TestRefineChanges:

    def test_similar_pair_becomes_modified(self):
        raw = [
            ChangeEntry.removed(Unit("the tenant pays rent monthly", 3)),
            ChangeEntry.added(Unit("the tenant pays rent weekly", 4)),
        ]
        out = refine_changes(raw)
        assert len(out) == 1
        m = out[0]
        assert m.type == ChangeType.MODIFIED
        assert (m.original_text, m.comparison_text) == ("the tenant pays rent monthly", "the tenant pays rent weekly")
        assert (m.original_index, m.comparison_index) == (3, 4)
        assert m.similarity == pytest.approx(4 / 6)

    def test_dissimilar_pair_kept(self):
        raw = [ChangeEntry.removed(Unit("alpha beta", 0)), ChangeEntry.added(Unit("gamma delta", 0))]
        assert refine_changes(raw) == raw

    def test_added_then_removed_not_merged(self):
        raw = [ChangeEntry.added(Unit("same words here", 0)), ChangeEntry.removed(Unit("same words here", 0))]
        assert refine_changes(raw) == raw

    def test_order_preserved(self):
        raw = [
            ChangeEntry.unchanged(Unit("intro", 0), Unit("intro", 0)),
            ChangeEntry.removed(Unit("fee is ten dollars", 1)),
            ChangeEntry.added(Unit("fee is twenty dollars", 1)),
            ChangeEntry.unchanged(Unit("outro", 2), Unit("outro", 2)),
        ]
        out = refine_changes(raw)
        assert [e.type for e in out] == [ChangeType.UNCHANGED, ChangeType.MODIFIED, ChangeType.UNCHANGED]

    def test_only_last_removed_pairs_with_added(self):
        raw = [
            ChangeEntry.removed(Unit("first removed line", 0)),
            ChangeEntry.removed(Unit("notice period is 30 days", 1)),
            ChangeEntry.added(Unit("notice period is 60 days", 0)),
        ]
        out = refine_changes(raw)
        assert [e.type for e in out] == [ChangeType.REMOVED, ChangeType.MODIFIED]
        assert out[1].original_index == 1

    def test_threshold_configurable(self):
        raw = [
            ChangeEntry.removed(Unit("the tenant pays rent monthly", 0)),
            ChangeEntry.added(Unit("the tenant pays rent weekly", 0)),
        ]
        assert refine_changes(raw, threshold=0.9) == raw


class TestOracleBoundary:

    def test_one_word_apart_aligns_as_change_then_merges(self):
        a = units("Buyer pays all shipping fees")
        b = units("Buyer pays all shipping fees promptly")
        assert not are_equivalent(a[0], b[0])

        raw = align_units(a, b)
        assert [e.type for e in raw] == [ChangeType.REMOVED, ChangeType.ADDED]

        out = diff_units(a, b)
        assert [e.type for e in out] == [ChangeType.MODIFIED]
        assert out[0].similarity == pytest.approx(5 / 6)


class TestCollapseBlankRuns:

    def test_drops_repeated_blank_of_same_type(self):
        entries = [
            ChangeEntry.unchanged(Unit("", 0), Unit("", 0)),
            ChangeEntry.unchanged(Unit("", 1), Unit("", 1)),
            ChangeEntry.added(Unit("x", 2)),
        ]
        out = collapse_blank_runs(entries)
        assert [e.type for e in out] == [ChangeType.UNCHANGED, ChangeType.ADDED]

    def test_keeps_blank_of_different_type(self):
        entries = [
            ChangeEntry.unchanged(Unit("", 0), Unit("", 0)),
            ChangeEntry.added(Unit("", 1)),
        ]
        assert collapse_blank_runs(entries) == entries


class TestComputeStatistics:

    def test_empty(self):
        s = compute_statistics([])
        assert (s.total, s.change_percentage) == (0, 0)

    def test_counts(self, sample_entries):
        s = compute_statistics(sample_entries)
        assert (s.total, s.unchanged, s.added, s.removed, s.modified) == (4, 1, 1, 1, 1)
        assert s.unchanged + s.added + s.removed + s.modified == s.total
        assert s.change_percentage == 75

    def test_rounds_half_up(self):
        entries = [ChangeEntry.unchanged(Unit("same", i), Unit("same", i)) for i in range(7)]
        entries.append(ChangeEntry.added(Unit("new", 7)))
        assert compute_statistics(entries).change_percentage == 13  # 12.5


class TestChangeEntrySerialization:

    def test_camel_case_aliases(self):
        e = ChangeEntry.added(Unit("new clause", 2))
        assert e.model_dump(mode="json", by_alias=True) == {
            "type": "added",
            "originalText": None,
            "comparisonText": "new clause",
            "originalIndex": None,
            "comparisonIndex": 2,
            "similarity": None,
        }

    def test_entries_are_frozen(self):
        e = ChangeEntry.added(Unit("new clause", 2))
        with pytest.raises(ValidationError):
            e.comparison_text = "other"
