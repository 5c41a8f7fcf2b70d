"""
Scoring Engine — ranks candidate companies by ICP fit on 4 weighted factors.

Fit Score = round(Industry×w1 + Location×w2 + EmployeeSize×w3 + Revenue×w4) / 100

Industry and location sub-scores are 0 or 100. Employee size and revenue are
100 on an exact bucket match, 50 when the candidate's bucket sits directly
next to a selected bucket on the ordinal scale, else 0. Weights must add to
100 (checked by callers via validate_weights before persisting or rescoring).
Pure functions, no I/O.
"""
import math
from dataclasses import dataclass
from typing import Optional, Sequence

from app.config import settings


# --- Ordinal bucket scales ---

COMPANY_SIZE_RANGES = [
    "1-10", "11-20", "21-50", "51-100", "101-200", "201-500",
    "501-1,000", "1,001-2,000", "2,001-5,000", "5,001-10,000", "10,001+",
]

REVENUE_RANGES = [
    "Less than $1M", "$1M-$2M", "$2M-$5M", "$5M-$10M", "$10M-$20M",
    "$20M-$50M", "$50M-$100M", "$100M-$200M", "$200M-$500M", "$500M-$1B", "$1B+",
]

FACTORS = ("industry", "location", "employee_size", "revenue")


class InvalidWeights(ValueError):
    """Weight set is negative somewhere or does not add up to 100."""


@dataclass(frozen=True)
class IcpWeights:
    industry: int
    location: int
    employee_size: int
    revenue: int

    @property
    def total(self) -> int:
        return self.industry + self.location + self.employee_size + self.revenue

    def as_dict(self) -> dict:
        return {f: getattr(self, f) for f in FACTORS}

    @classmethod
    def from_profile(cls, profile) -> "IcpWeights":
        return cls(
            industry=profile.weight_industry,
            location=profile.weight_location,
            employee_size=profile.weight_employee_size,
            revenue=profile.weight_revenue,
        )


DEFAULT_WEIGHTS = IcpWeights(
    industry=settings.weight_industry,
    location=settings.weight_location,
    employee_size=settings.weight_employee_size,
    revenue=settings.weight_revenue,
)


def validate_weights(weights: IcpWeights) -> IcpWeights:
    """Raise InvalidWeights unless every weight is >= 0 and they total 100."""
    negative = [f for f in FACTORS if getattr(weights, f) < 0]
    if negative:
        raise InvalidWeights(f"Weights cannot be negative: {', '.join(negative)}")
    if weights.total != 100:
        raise InvalidWeights(f"Weights must add to 100 (got {weights.total})")
    return weights


# --- Score breakdown (returned by score_breakdown) ---

@dataclass
class ScoreBreakdown:
    industry: int = 0
    location: int = 0
    employee_size: int = 0
    revenue: int = 0
    weights: Optional[IcpWeights] = None
    final_score: int = 0

    def to_dict(self) -> dict:
        weights = self.weights.as_dict() if self.weights else {f: 0 for f in FACTORS}
        return {
            "components": {
                f: {
                    "match": getattr(self, f),
                    "weight": weights[f],
                    "contribution": _round_half_up(getattr(self, f) * weights[f] / 100),
                }
                for f in FACTORS
            },
            "final_score": self.final_score,
        }


# --- Individual factor scores ---

def _round_half_up(x: float) -> int:
    # round() is banker's rounding; 0.5 must go up
    return int(math.floor(x + 0.5))


def score_industry(industry: Optional[str], icp_industries: Sequence[str]) -> int:
    if not industry or not icp_industries:
        return 0
    return 100 if industry in icp_industries else 0


def score_location(
    location: Optional[str], icp_locations: Sequence[str], is_nationwide: bool
) -> int:
    if is_nationwide:
        return 100
    if not location or not icp_locations:
        return 0
    return 100 if location in icp_locations else 0


def score_bucket(
    value: Optional[str], selected: Sequence[str], scale: Sequence[str]
) -> int:
    """Exact bucket = 100, neighbouring bucket on the scale = 50, else 0."""
    if not value or not selected:
        return 0
    if value in selected:
        return 100
    if value not in scale:
        return 0
    idx = scale.index(value)
    for bucket in selected:
        if bucket in scale and abs(scale.index(bucket) - idx) == 1:
            return 50
    return 0


# --- Composite ---

def _factor_scores(candidate, profile, size_scale, revenue_scale) -> dict:
    return {
        "industry": score_industry(
            getattr(candidate, "industry", None), getattr(profile, "industries", None) or []
        ),
        "location": score_location(
            getattr(candidate, "location", None),
            getattr(profile, "locations", None) or [],
            bool(getattr(profile, "is_nationwide", False)),
        ),
        "employee_size": score_bucket(
            getattr(candidate, "employee_size_range", None),
            getattr(profile, "company_sizes", None) or [],
            size_scale,
        ),
        "revenue": score_bucket(
            getattr(candidate, "revenue_range", None),
            getattr(profile, "revenue_ranges", None) or [],
            revenue_scale,
        ),
    }


def score(
    candidate,
    profile,
    weights: IcpWeights = DEFAULT_WEIGHTS,
    size_scale: Sequence[str] = COMPANY_SIZE_RANGES,
    revenue_scale: Sequence[str] = REVENUE_RANGES,
) -> int:
    """Fit score 0-100 for a candidate against an ICP profile.

    Weights are used as given; with a valid set (sum 100) the result is
    always within 0-100.
    """
    if candidate is None or profile is None:
        return 0
    subs = _factor_scores(candidate, profile, size_scale, revenue_scale)
    total = sum(subs[f] * getattr(weights, f) / 100 for f in FACTORS)
    return _round_half_up(total)


def score_breakdown(
    candidate,
    profile,
    weights: IcpWeights = DEFAULT_WEIGHTS,
    size_scale: Sequence[str] = COMPANY_SIZE_RANGES,
    revenue_scale: Sequence[str] = REVENUE_RANGES,
) -> ScoreBreakdown:
    """Per-factor match, weight and contribution for display."""
    subs = _factor_scores(candidate, profile, size_scale, revenue_scale)
    return ScoreBreakdown(
        **subs,
        weights=weights,
        final_score=score(candidate, profile, weights, size_scale, revenue_scale),
    )
