"""Tests for ICP fit scoring (factor scores, composite, breakdown, weights)."""

from types import SimpleNamespace

import pytest

from app.scoring import (
    COMPANY_SIZE_RANGES,
    DEFAULT_WEIGHTS,
    REVENUE_RANGES,
    IcpWeights,
    InvalidWeights,
    score,
    score_breakdown,
    score_bucket,
    score_industry,
    score_location,
    validate_weights,
)


def _profile(**kw):
    base = dict(
        industries=["Software"],
        locations=["CA"],
        is_nationwide=False,
        company_sizes=["11-20"],
        revenue_ranges=["$1M-$2M"],
    )
    base.update(kw)
    return SimpleNamespace(**base)


def _candidate(**kw):
    base = dict(
        industry="Software",
        location="CA",
        employee_size_range="11-20",
        revenue_range="$1M-$2M",
    )
    base.update(kw)
    return SimpleNamespace(**base)


# ── Factor scores ────────────────────────────────────────────────────


class TestIndustry:
    def test_exact_match(self):
        assert score_industry("Software", ["Software", "Fintech"]) == 100

    def test_no_match(self):
        assert score_industry("Retail", ["Software"]) == 0

    def test_missing_value_or_criteria(self):
        assert score_industry(None, ["Software"]) == 0
        assert score_industry("Software", []) == 0


class TestLocation:
    def test_nationwide_matches_anything(self):
        assert score_location("TX", ["CA"], True) == 100
        assert score_location(None, [], True) == 100

    def test_listed_location(self):
        assert score_location("CA", ["CA", "NY"], False) == 100

    def test_unlisted_location(self):
        assert score_location("TX", ["CA"], False) == 0


class TestBucket:
    def test_exact(self):
        assert score_bucket("21-50", ["21-50"], COMPANY_SIZE_RANGES) == 100

    def test_adjacent_either_side(self):
        assert score_bucket("11-20", ["21-50"], COMPANY_SIZE_RANGES) == 50
        assert score_bucket("51-100", ["21-50"], COMPANY_SIZE_RANGES) == 50

    def test_two_buckets_away_scores_zero(self):
        assert score_bucket("1-10", ["21-50"], COMPANY_SIZE_RANGES) == 0
        assert score_bucket("$5M-$10M", ["$1M-$2M"], REVENUE_RANGES) == 0

    def test_unknown_value(self):
        assert score_bucket("lots", ["21-50"], COMPANY_SIZE_RANGES) == 0

    def test_exact_beats_adjacent_beats_none(self):
        selected = ["$2M-$5M"]
        exact = score_bucket("$2M-$5M", selected, REVENUE_RANGES)
        adjacent = score_bucket("$5M-$10M", selected, REVENUE_RANGES)
        none = score_bucket("$50M-$100M", selected, REVENUE_RANGES)
        assert exact >= adjacent >= none
        assert (exact, adjacent, none) == (100, 50, 0)


# ── Composite score ──────────────────────────────────────────────────


class TestScore:
    def test_perfect_fit(self):
        assert score(_candidate(), _profile()) == 100

    def test_worked_example_scores_90(self):
        """Revenue two buckets away contributes nothing."""
        size_scale = ["1-10", "11-50", "51-200"]
        revenue_scale = ["<$1M", "$1M-$5M", "$5M-$10M", "$10M-$50M"]
        profile = _profile(
            industries=["Software"],
            locations=["CA"],
            company_sizes=["1-10", "11-50"],
            revenue_ranges=["<$1M"],
        )
        cand = _candidate(employee_size_range="11-50", revenue_range="$10M-$50M")
        weights = IcpWeights(industry=50, location=25, employee_size=15, revenue=10)

        result = score_breakdown(cand, profile, weights, size_scale, revenue_scale)
        assert (result.industry, result.location, result.employee_size, result.revenue) == (
            100, 100, 100, 0
        )
        assert result.final_score == 90

    def test_worked_example_with_standard_scales(self):
        profile = _profile(
            company_sizes=["1-10", "11-20"],
            revenue_ranges=["Less than $1M", "$1M-$2M"],
        )
        cand = _candidate(employee_size_range="11-20", revenue_range="$5M-$10M")
        assert score(cand, profile, DEFAULT_WEIGHTS) == 90

    def test_adjacent_size_gives_half_weight(self):
        cand = _candidate(employee_size_range="21-50")
        # 50 + 25 + 15*0.5 + 10 = 92.5, rounds half up
        assert score(cand, _profile()) == 93

    def test_nationwide_profile_ignores_location(self):
        cand = _candidate(location="Alaska")
        assert score(cand, _profile(is_nationwide=True)) == 100
        assert score(cand, _profile(is_nationwide=False)) == 75

    def test_empty_profile_scores_zero(self):
        empty = _profile(industries=[], locations=[], company_sizes=[], revenue_ranges=[])
        assert score(_candidate(), empty) == 0

    def test_missing_candidate_or_profile(self):
        assert score(None, _profile()) == 0
        assert score(_candidate(), None) == 0

    @pytest.mark.parametrize(
        "weights",
        [
            IcpWeights(50, 25, 15, 10),
            IcpWeights(100, 0, 0, 0),
            IcpWeights(0, 0, 0, 100),
            IcpWeights(25, 25, 25, 25),
            IcpWeights(33, 33, 33, 1),
        ],
    )
    def test_always_between_0_and_100(self, weights):
        candidates = [
            _candidate(),
            _candidate(industry="Retail", location="TX"),
            _candidate(employee_size_range="21-50", revenue_range="$2M-$5M"),
            _candidate(industry=None, location=None, employee_size_range=None, revenue_range=None),
        ]
        for cand in candidates:
            assert 0 <= score(cand, _profile(), weights) <= 100

    def test_deterministic(self):
        cand, profile = _candidate(revenue_range="$2M-$5M"), _profile()
        assert score(cand, profile) == score(cand, profile)


class TestBreakdown:
    def test_components_and_contributions(self):
        cand = _candidate(employee_size_range="21-50", location="TX")
        data = score_breakdown(cand, _profile()).to_dict()
        assert data["components"]["industry"] == {"match": 100, "weight": 50, "contribution": 50}
        assert data["components"]["location"] == {"match": 0, "weight": 25, "contribution": 0}
        assert data["components"]["employee_size"]["match"] == 50
        assert data["final_score"] == score(cand, _profile())


# ── Weights ──────────────────────────────────────────────────────────


class TestValidateWeights:
    def test_defaults_are_valid(self):
        assert validate_weights(DEFAULT_WEIGHTS) is DEFAULT_WEIGHTS
        assert DEFAULT_WEIGHTS.as_dict() == {
            "industry": 50, "location": 25, "employee_size": 15, "revenue": 10
        }

    def test_rejects_sum_not_100(self):
        with pytest.raises(InvalidWeights, match="add to 100"):
            validate_weights(IcpWeights(50, 25, 15, 5))

    def test_rejects_negative(self):
        with pytest.raises(InvalidWeights, match="negative"):
            validate_weights(IcpWeights(110, -10, 0, 0))

    def test_invalid_weights_is_value_error(self):
        assert issubclass(InvalidWeights, ValueError)
