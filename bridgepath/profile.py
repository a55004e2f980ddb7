from __future__ import annotations

import re
from dataclasses import asdict, dataclass, field
from datetime import date
from typing import Any, Mapping

from .types import Seniority
from .util import normalize_text

_SENIORITY_PATTERNS: list[tuple[Seniority, str]] = [
    (Seniority.EXECUTIVE, r"\b(ceo|cto|cfo|coo|chief|founder|co-founder|president|vp|vice president)\b"),
    (Seniority.LEAD, r"\b(director|head of|principal|staff|lead|manager)\b"),
    (Seniority.SENIOR, r"\b(senior|sr\.?)\b"),
    (Seniority.ENTRY, r"\b(intern|junior|jr\.?|associate|graduate|trainee)\b"),
]

_PRESENT = {"present", "current", "now", ""}


def _get(d: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    for k in keys:
        if k in d and d[k] is not None:
            return d[k]
    return default


def _str_list(xs: Any) -> tuple[str, ...]:
    if not xs:
        return ()
    if isinstance(xs, str):
        xs = [xs]
    return tuple(str(x) for x in xs if x)


def parse_date(value: str | None, *, today: date | None = None) -> date | None:
    """Parse "YYYY", "YYYY-MM" or "YYYY-MM-DD"; "Present" maps to today."""
    if value is None:
        return None
    v = str(value).strip()
    if v.lower() in _PRESENT:
        return today or date.today()
    m = re.match(r"^(\d{4})(?:-(\d{1,2}))?(?:-(\d{1,2}))?", v)
    if not m:
        return None
    year = int(m.group(1))
    month = int(m.group(2) or 1)
    day = int(m.group(3) or 1)
    try:
        return date(year, month, day)
    except ValueError:
        return None


@dataclass(frozen=True)
class WorkExperience:
    company: str = ""
    title: str = ""
    industry: str = ""
    skills: tuple[str, ...] = ()
    domains: tuple[str, ...] = ()
    start: str = ""
    end: str = ""

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "WorkExperience":
        return cls(
            company=str(_get(d, "company", default="")),
            title=str(_get(d, "title", default="")),
            industry=str(_get(d, "industry", default="")),
            skills=_str_list(_get(d, "skills")),
            domains=_str_list(_get(d, "domains")),
            start=str(_get(d, "start", "startDate", "start_date", default="")),
            end=str(_get(d, "end", "endDate", "end_date", default="")),
        )


@dataclass(frozen=True)
class EducationRecord:
    school: str = ""
    degree: str = ""
    field: str = ""
    start: str = ""
    end: str = ""

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "EducationRecord":
        return cls(
            school=str(_get(d, "school", default="")),
            degree=str(_get(d, "degree", default="")),
            field=str(_get(d, "field", default="")),
            start=str(_get(d, "start", "startDate", "start_date", default="")),
            end=str(_get(d, "end", "endDate", "end_date", default="")),
        )


@dataclass(frozen=True)
class SkillRecord:
    name: str
    level: str = ""
    years: float = 0.0
    category: str = ""

    @classmethod
    def from_value(cls, v: Any) -> "SkillRecord":
        if isinstance(v, str):
            return cls(name=v)
        return cls(
            name=str(_get(v, "name", default="")),
            level=str(_get(v, "level", default="")),
            years=float(_get(v, "years", "yearsOfExperience", "years_of_experience", default=0.0) or 0.0),
            category=str(_get(v, "category", default="")),
        )


@dataclass(frozen=True)
class ProfileMetadata:
    total_years_experience: float = 0.0
    domains: tuple[str, ...] = ()
    seniority: Seniority = Seniority.UNKNOWN


@dataclass(frozen=True)
class ActorProfile:
    """Immutable snapshot of a person in the network.

    Built by whatever extracted the data; the resolver only reads it.
    """

    id: str
    name: str = ""
    headline: str = ""
    work_experience: tuple[WorkExperience, ...] = ()
    education: tuple[EducationRecord, ...] = ()
    skills: tuple[SkillRecord, ...] = ()
    location: str = ""
    metadata: ProfileMetadata = field(default_factory=ProfileMetadata)

    @property
    def display_name(self) -> str:
        return self.name or self.id

    @property
    def current_company(self) -> str:
        return self.work_experience[0].company if self.work_experience else ""

    def skill_names(self) -> set[str]:
        names = {normalize_text(s.name) for s in self.skills}
        for exp in self.work_experience:
            names.update(normalize_text(s) for s in exp.skills)
        names.discard("")
        return names

    def companies(self) -> set[str]:
        out = {normalize_text(e.company) for e in self.work_experience}
        out.discard("")
        return out

    def industries(self) -> set[str]:
        out = {normalize_text(e.industry) for e in self.work_experience}
        out.discard("")
        return out

    def schools(self) -> set[str]:
        out = {normalize_text(e.school) for e in self.education}
        out.discard("")
        return out

    def completeness(self) -> int:
        return len(self.skills) + 2 * len(self.work_experience) + len(self.education)

    def latest_start(self) -> date | None:
        starts = [parse_date(e.start) for e in self.work_experience if e.start]
        starts = [s for s in starts if s is not None]
        return max(starts) if starts else None

    def fingerprint(self) -> str:
        parts = [
            self.id,
            normalize_text(self.location),
            "|".join(sorted(self.industries())),
            "|".join(sorted(self.skill_names())),
            "|".join(sorted(self.schools())),
            "|".join(sorted(self.companies())),
        ]
        return "::".join(parts)

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        d["metadata"]["seniority"] = self.metadata.seniority.value
        return d

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "ActorProfile":
        aid = str(_get(d, "id", "publicId", "public_id", default="") or "")
        if not aid:
            raise ValueError("actor missing id")

        work = tuple(
            WorkExperience.from_dict(x)
            for x in (_get(d, "work_experience", "workExperience", "experience", default=[]) or [])
            if isinstance(x, Mapping)
        )
        edu = tuple(
            EducationRecord.from_dict(x)
            for x in (_get(d, "education", default=[]) or [])
            if isinstance(x, Mapping)
        )
        skills = tuple(
            s
            for s in (SkillRecord.from_value(v) for v in (_get(d, "skills", default=[]) or []) if v)
            if s.name
        )
        headline = str(_get(d, "headline", "title", default=""))

        meta_in = _get(d, "metadata", default={}) or {}
        metadata = derive_metadata(work, headline, meta_in)

        return cls(
            id=aid,
            name=str(_get(d, "name", default="")),
            headline=headline,
            work_experience=work,
            education=edu,
            skills=skills,
            location=str(_get(d, "location", default="")),
            metadata=metadata,
        )


def infer_seniority(title: str) -> Seniority:
    t = normalize_text(title)
    if not t:
        return Seniority.UNKNOWN
    for level, pattern in _SENIORITY_PATTERNS:
        if re.search(pattern, t):
            return level
    return Seniority.MID


def total_years(work: tuple[WorkExperience, ...], *, today: date | None = None) -> float:
    days = 0
    for exp in work:
        start = parse_date(exp.start, today=today)
        if start is None:
            continue
        end = parse_date(exp.end or "present", today=today)
        if end is None or end < start:
            continue
        days += (end - start).days
    return round(days / 365.25, 1)


def derive_metadata(
    work: tuple[WorkExperience, ...], headline: str, given: Mapping[str, Any] | None = None
) -> ProfileMetadata:
    given = given or {}
    years = _get(given, "total_years_experience", "totalYearsExperience")
    domains = _str_list(_get(given, "domains"))
    seniority_raw = _get(given, "seniority")

    if years is None:
        years = total_years(work)
    if not domains:
        seen: dict[str, None] = {}
        for exp in work:
            for dom in exp.domains:
                seen.setdefault(dom, None)
        domains = tuple(seen)
    try:
        seniority = Seniority(str(seniority_raw)) if seniority_raw else None
    except ValueError:
        seniority = None
    if seniority is None:
        title = work[0].title if work else headline
        seniority = infer_seniority(title)

    return ProfileMetadata(total_years_experience=float(years or 0.0), domains=domains, seniority=seniority)
