"""
Tests for ranking and threshold calculation.

Validates:
- Regular cut at top_n, sorted by mentions descending
- Tie-break by user_id ascending
- Strict threshold for special members
- Zero-regular edge case
- Protected members with evidence always qualify
"""
import random

import pytest

from hierarch.engine import RankingCalculator, compute_threshold, qualify, rank_records
from hierarch.models import Tier

from tests.conftest import make_config, make_record


def _ids(records):
    return [r.user_id for r in records]


class TestQualify:
    def test_scenario_two_slots_with_tie(self):
        """A(50), B(40), C(40), D(10) with N=2."""
        records = [
            make_record("A", 50),
            make_record("B", 40),
            make_record("C", 40),
            make_record("D", 10),
            make_record("S41", 41, Tier.SPECIAL),
            make_record("S40", 40, Tier.SPECIAL),
        ]
        result = qualify(records, top_n=2)

        assert _ids(result.qualified_regular) == ["A", "B"]
        assert result.threshold == 40
        assert _ids(result.qualified_special) == ["S41"]

    def test_tie_break_is_independent_of_input_order(self):
        records = [make_record(uid, 40) for uid in ["c", "a", "d", "b"]]
        shuffled = list(records)
        random.Random(7).shuffle(shuffled)
        assert _ids(qualify(records, 2).qualified_regular) == ["a", "b"]
        assert _ids(qualify(shuffled, 2).qualified_regular) == ["a", "b"]

    def test_fewer_than_top_n_all_qualify(self):
        result = qualify([make_record("a", 3), make_record("b", 7)], top_n=30)
        assert _ids(result.qualified_regular) == ["b", "a"]
        assert result.threshold == 3

    def test_zero_regular_evidence_threshold_is_zero(self):
        result = qualify([make_record("s", 1, Tier.SPECIAL)], top_n=30)
        assert result.threshold == 0
        assert _ids(result.qualified_special) == ["s"]

    def test_special_tie_with_threshold_does_not_qualify(self):
        records = [make_record("r", 5), make_record("s", 5, Tier.SPECIAL)]
        result = qualify(records, top_n=1)
        assert result.qualified_special == ()

    def test_protected_with_evidence_qualify_regardless_of_count(self):
        records = [make_record("r", 100), make_record("p", 1, Tier.PROTECTED)]
        result = qualify(records, top_n=1)
        assert _ids(result.qualified_protected) == ["p"]

    def test_empty_input(self):
        result = qualify([], top_n=30)
        assert result.total == 0
        assert result.threshold == 0

    def test_top_n_must_be_positive(self):
        with pytest.raises(ValueError):
            qualify([], top_n=0)

    @pytest.mark.parametrize("seed", range(5))
    def test_properties_hold_for_random_evidence(self, seed):
        rng = random.Random(seed)
        tiers = [Tier.REGULAR, Tier.REGULAR, Tier.SPECIAL, Tier.PROTECTED]
        records = [
            make_record(f"u{i}", rng.randint(1, 20), rng.choice(tiers))
            for i in range(60)
        ]
        result = qualify(records, top_n=10)

        counts = [r.mention_count for r in result.qualified_regular]
        assert len(counts) <= 10
        assert counts == sorted(counts, reverse=True)
        assert all(r.mention_count > result.threshold for r in result.qualified_special)
        assert all(r.tier == Tier.REGULAR for r in result.qualified_regular)


class TestHelpers:
    def test_rank_records(self):
        ranked = rank_records([make_record("b", 1), make_record("a", 1), make_record("c", 2)])
        assert _ids(ranked) == ["c", "a", "b"]

    def test_compute_threshold(self):
        assert compute_threshold([]) == 0
        assert compute_threshold([make_record("a", 9), make_record("b", 4)]) == 4


class TestRankingCalculator:
    def test_uses_configured_top_n(self):
        calculator = RankingCalculator.from_config(make_config(top_n=1))
        result = calculator.qualify([make_record("a", 2), make_record("b", 1)])
        assert _ids(result.qualified_regular) == ["a"]
        assert result.threshold == 2
