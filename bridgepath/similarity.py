from __future__ import annotations

import re
from dataclasses import asdict, dataclass, field
from typing import Any

from .profile import ActorProfile
from .types import LocationMatch
from .util import clamp, jaccard, normalize_text

DIMENSIONS = ("industry", "skills", "education", "location", "companies")

# Adjacent industries receive partial credit. Keys and values are normalized.
INDUSTRY_RELATIONSHIPS: dict[str, tuple[str, ...]] = {
    "software development": ("information technology", "computer software", "internet", "saas", "cloud computing", "it services"),
    "information technology": ("software development", "it services", "computer networking", "cybersecurity", "cloud computing"),
    "computer software": ("software development", "information technology", "saas", "internet"),
    "technology": ("software development", "information technology", "computer software", "internet", "saas"),
    "internet": ("software development", "computer software", "technology", "e-commerce"),
    "saas": ("software development", "computer software", "cloud computing"),
    "cloud computing": ("software development", "information technology", "saas"),
    "cybersecurity": ("information technology", "it services", "computer networking"),
    "data science": ("machine learning", "artificial intelligence", "analytics", "research"),
    "machine learning": ("data science", "artificial intelligence", "research", "software development"),
    "artificial intelligence": ("machine learning", "data science", "research"),
    "analytics": ("data science", "business intelligence", "consulting", "market research"),
    "investment banking": ("finance", "private equity", "venture capital", "financial services"),
    "finance": ("investment banking", "accounting", "financial services", "private equity"),
    "financial services": ("finance", "banking", "investment banking", "insurance"),
    "banking": ("financial services", "finance", "investment banking"),
    "private equity": ("investment banking", "venture capital", "finance"),
    "venture capital": ("private equity", "investment banking", "finance"),
    "accounting": ("finance", "consulting", "financial services"),
    "consulting": ("management consulting", "it services", "accounting", "strategy"),
    "management consulting": ("consulting", "strategy"),
    "marketing": ("advertising", "digital marketing", "public relations", "market research"),
    "digital marketing": ("marketing", "advertising", "e-commerce"),
    "advertising": ("marketing", "digital marketing", "public relations"),
    "healthcare": ("hospital & health care", "biotechnology", "pharmaceuticals", "medical devices"),
    "biotechnology": ("pharmaceuticals", "healthcare", "research"),
    "pharmaceuticals": ("biotechnology", "healthcare"),
    "education": ("higher education", "e-learning", "research"),
    "higher education": ("education", "research"),
}

# Words too generic to count as a shared industry keyword.
_INDUSTRY_STOPWORDS = {
    "and", "&", "of", "the", "services", "service", "industry", "industries",
    "products", "solutions", "management", "development", "general",
}

US_STATES: dict[str, str] = {
    "AL": "alabama", "AK": "alaska", "AZ": "arizona", "AR": "arkansas", "CA": "california",
    "CO": "colorado", "CT": "connecticut", "DE": "delaware", "FL": "florida", "GA": "georgia",
    "HI": "hawaii", "ID": "idaho", "IL": "illinois", "IN": "indiana", "IA": "iowa",
    "KS": "kansas", "KY": "kentucky", "LA": "louisiana", "ME": "maine", "MD": "maryland",
    "MA": "massachusetts", "MI": "michigan", "MN": "minnesota", "MS": "mississippi",
    "MO": "missouri", "MT": "montana", "NE": "nebraska", "NV": "nevada", "NH": "new hampshire",
    "NJ": "new jersey", "NM": "new mexico", "NY": "new york", "NC": "north carolina",
    "ND": "north dakota", "OH": "ohio", "OK": "oklahoma", "OR": "oregon", "PA": "pennsylvania",
    "RI": "rhode island", "SC": "south carolina", "SD": "south dakota", "TN": "tennessee",
    "TX": "texas", "UT": "utah", "VT": "vermont", "VA": "virginia", "WA": "washington",
    "WV": "west virginia", "WI": "wisconsin", "WY": "wyoming", "DC": "district of columbia",
}
_STATE_BY_NAME = {v: k for k, v in US_STATES.items()}


@dataclass(frozen=True)
class SimilarityWeights:
    industry: float = 0.30
    skills: float = 0.25
    education: float = 0.20
    location: float = 0.15
    companies: float = 0.10

    def normalized(self) -> "SimilarityWeights":
        values = [max(0.0, float(getattr(self, d))) for d in DIMENSIONS]
        total = sum(values)
        if total <= 0:
            return SimilarityWeights()
        return SimilarityWeights(*(v / total for v in values))


@dataclass(frozen=True)
class ScoringConfig:
    weights: SimilarityWeights = field(default_factory=SimilarityWeights)
    exact_industry: float = 1.0
    related_industry: float = 0.6
    same_city: float = 1.0
    same_region: float = 0.5


@dataclass(frozen=True)
class SimilarityBreakdown:
    industry: float = 0.0
    skills: float = 0.0
    education: float = 0.0
    location: float = 0.0
    companies: float = 0.0

    def items(self) -> list[tuple[str, float]]:
        return [(d, getattr(self, d)) for d in DIMENSIONS]


@dataclass(frozen=True)
class SimilarityResult:
    overall: float
    breakdown: SimilarityBreakdown

    @classmethod
    def empty(cls) -> "SimilarityResult":
        return cls(overall=0.0, breakdown=SimilarityBreakdown())

    def to_dict(self) -> dict[str, Any]:
        return {"overall": self.overall, "breakdown": asdict(self.breakdown)}


@dataclass(frozen=True)
class ParsedLocation:
    city: str = ""
    region: str = ""
    country: str = ""


@dataclass(frozen=True)
class SimilarityDetails:
    result: SimilarityResult
    shared_skills: list[str]
    shared_companies: list[str]
    shared_schools: list[str]
    location_match: LocationMatch
    industry_match: str  # "exact" | "related" | "none"


def parse_location(location: str | None) -> ParsedLocation:
    """Split "City, Region[, Country]" into parts.

    US state names and abbreviations are folded to the same region code.
    """
    if not location or not location.strip():
        return ParsedLocation()
    parts = [normalize_text(p) for p in location.split(",") if p.strip()]
    if not parts:
        return ParsedLocation()
    city = parts[0]
    region = ""
    country = ""
    if len(parts) >= 2:
        region = _fold_region(parts[1])
    if len(parts) >= 3:
        country = parts[2]
    elif region and region.upper() in US_STATES:
        country = "united states"
    return ParsedLocation(city=city, region=region, country=country)


def _fold_region(raw: str) -> str:
    r = raw.strip().rstrip(".")
    if r.upper() in US_STATES:
        return r.lower()
    if r in _STATE_BY_NAME:
        return _STATE_BY_NAME[r].lower()
    return r


def _industry_keywords(industry: str) -> set[str]:
    tokens = set(re.split(r"[^a-z0-9]+", industry))
    return {t for t in tokens if len(t) > 2 and t not in _INDUSTRY_STOPWORDS}


def industries_related(a: str, b: str) -> bool:
    a, b = normalize_text(a), normalize_text(b)
    if not a or not b:
        return False
    if b in INDUSTRY_RELATIONSHIPS.get(a, ()) or a in INDUSTRY_RELATIONSHIPS.get(b, ()):
        return True
    return bool(_industry_keywords(a) & _industry_keywords(b))


def top_dimensions(result: SimilarityResult, *, min_score: float = 0.5) -> str:
    ranked = sorted(
        ((d, s) for d, s in result.breakdown.items() if s > min_score),
        key=lambda kv: (-kv[1], DIMENSIONS.index(kv[0])),
    )
    names = [d for d, _ in ranked]
    if not names:
        return "background"
    if len(names) == 1:
        return names[0]
    return f"{names[0]} and {names[1]}"


class ProfileSimilarityScorer:
    def __init__(self, config: ScoringConfig | None = None):
        self.config = config or ScoringConfig()
        self._weights = self.config.weights.normalized()

    def industry_score(self, a: ActorProfile, b: ActorProfile) -> tuple[float, str]:
        ia, ib = a.industries(), b.industries()
        if not ia or not ib:
            return 0.0, "none"
        if ia & ib:
            return self.config.exact_industry, "exact"
        if any(industries_related(x, y) for x in ia for y in ib):
            return self.config.related_industry, "related"
        return 0.0, "none"

    def location_score(self, a: ActorProfile, b: ActorProfile) -> tuple[float, LocationMatch]:
        if not a.location or not b.location:
            return 0.0, LocationMatch.NONE
        if normalize_text(a.location) == normalize_text(b.location):
            return self.config.same_city, LocationMatch.CITY
        la, lb = parse_location(a.location), parse_location(b.location)
        same_region = bool(la.region) and la.region == lb.region
        if same_region and la.city and la.city == lb.city:
            return self.config.same_city, LocationMatch.CITY
        if same_region:
            return self.config.same_region, LocationMatch.REGION
        return 0.0, LocationMatch.NONE

    def compute_detailed(self, a: ActorProfile | None, b: ActorProfile | None) -> SimilarityDetails:
        if a is None or b is None:
            return SimilarityDetails(SimilarityResult.empty(), [], [], [], LocationMatch.NONE, "none")

        industry, industry_match = self.industry_score(a, b)
        sa, sb = a.skill_names(), b.skill_names()
        skills = jaccard(sa, sb)
        shared_schools = sorted(a.schools() & b.schools())
        education = 1.0 if shared_schools else 0.0
        location, location_match = self.location_score(a, b)
        ca, cb = a.companies(), b.companies()
        companies = jaccard(ca, cb)

        breakdown = SimilarityBreakdown(
            industry=clamp(industry),
            skills=clamp(skills),
            education=clamp(education),
            location=clamp(location),
            companies=clamp(companies),
        )
        w = self._weights
        overall = clamp(sum(getattr(breakdown, d) * getattr(w, d) for d in DIMENSIONS))

        return SimilarityDetails(
            result=SimilarityResult(overall=overall, breakdown=breakdown),
            shared_skills=sorted(sa & sb),
            shared_companies=sorted(ca & cb),
            shared_schools=shared_schools,
            location_match=location_match,
            industry_match=industry_match,
        )

    def compute(self, a: ActorProfile | None, b: ActorProfile | None) -> SimilarityResult:
        return self.compute_detailed(a, b).result
