from __future__ import annotations

from enum import Enum
from typing import Any, TypedDict


class StrategyType(str, Enum):
    MUTUAL = "mutual"
    DIRECT_SIMILARITY = "direct-similarity"
    INTERMEDIARY = "intermediary"
    COLD_SIMILARITY = "cold-similarity"
    NONE = "none"


class BridgeDirection(str, Enum):
    # bridge is already connected to the target and can make a warm intro
    KNOWS_TARGET = "knows_target"
    # bridge must first reach the target on the source's behalf
    ASK_TO_INTRODUCE = "ask_to_introduce"


class SamplingStrategy(str, Enum):
    ALL = "all"
    MIXED = "mixed"


class Seniority(str, Enum):
    ENTRY = "entry"
    MID = "mid"
    SENIOR = "senior"
    LEAD = "lead"
    EXECUTIVE = "executive"
    UNKNOWN = "unknown"


class LocationMatch(str, Enum):
    CITY = "city"
    REGION = "region"
    NONE = "none"


class WorkExperienceJSON(TypedDict, total=False):
    company: str
    title: str
    industry: str
    skills: list[str]
    domains: list[str]
    start: str
    end: str


class EducationJSON(TypedDict, total=False):
    school: str
    degree: str
    field: str
    start: str
    end: str


class ActorJSON(TypedDict, total=False):
    id: str
    name: str
    headline: str
    location: str
    work_experience: list[WorkExperienceJSON]
    education: list[EducationJSON]
    skills: list[Any]
    metadata: dict[str, Any]


class NetworkJSON(TypedDict, total=False):
    actors: list[ActorJSON]
    # [source_id, target_id] or [source_id, target_id, strength]
    connections: list[list[Any]]
