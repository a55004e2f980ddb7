"""Shared profiles and graph builders.

Similarity numbers quoted in tests assume the default weights
(industry .30, skills .25, education .20, location .15, companies .10).
"""

from __future__ import annotations

from typing import Iterable

import pytest

from bridgepath.graph import InMemoryGraph
from bridgepath.profile import ActorProfile


def make_profile(
    actor_id: str,
    *,
    name: str | None = None,
    industry: str = "",
    company: str = "",
    title: str = "Engineer",
    skills: Iterable[str] = (),
    school: str = "",
    location: str = "",
    start: str = "2020-01",
) -> ActorProfile:
    work = []
    if company or industry:
        work.append({"company": company, "title": title, "industry": industry, "start": start})
    return ActorProfile.from_dict(
        {
            "id": actor_id,
            "name": name if name is not None else actor_id.capitalize(),
            "headline": title,
            "location": location,
            "work_experience": work,
            "education": [{"school": school}] if school else [],
            "skills": list(skills),
        }
    )


def build_graph(profiles: Iterable[ActorProfile], edges: Iterable[tuple] = ()) -> InMemoryGraph:
    graph = InMemoryGraph.empty()
    for p in profiles:
        graph.upsert_actor(p)
    for e in edges:
        if len(e) == 3:
            graph.connect(e[0], e[1], strength=e[2])
        else:
            graph.connect(e[0], e[1])
    return graph


@pytest.fixture
def alice() -> ActorProfile:
    return make_profile(
        "alice",
        industry="Software Development",
        company="Acme",
        skills=["Python", "SQL", "AWS"],
        school="Stanford University",
        location="San Francisco, CA",
    )


@pytest.fixture
def bob() -> ActorProfile:
    """Same background as alice in every dimension."""
    return make_profile(
        "bob",
        industry="Software Development",
        company="Acme",
        skills=["python", "sql", "aws"],
        school="Stanford University",
        location="San Francisco, CA",
    )


@pytest.fixture
def carol() -> ActorProfile:
    """Related industry, one shared skill, same state: ~0.34 with alice."""
    return make_profile(
        "carol",
        industry="Information Technology",
        company="Initech",
        skills=["Python"],
        location="Oakland, CA",
    )


@pytest.fixture
def zed() -> ActorProfile:
    """Nothing in common with alice."""
    return make_profile(
        "zed",
        industry="Healthcare",
        company="General Hospital",
        skills=["Nursing"],
        school="Harvard University",
        location="Boston, MA",
    )


@pytest.fixture
def ivan() -> ActorProfile:
    """~0.77 with alice, ~0.35 with tara."""
    return make_profile(
        "ivan",
        industry="Software Development",
        company="Acme",
        skills=["Python", "SQL"],
        school="Stanford University",
        location="New York, NY",
    )


@pytest.fixture
def tara() -> ActorProfile:
    """Shares only a school with alice (0.20)."""
    return make_profile(
        "tara",
        industry="Finance",
        company="Globex",
        skills=["Excel", "Financial Modeling"],
        school="Stanford University",
        location="New York, NY",
    )


@pytest.fixture
def mike() -> ActorProfile:
    return make_profile("mike", industry="Retail", company="Shopmart", location="Denver, CO")


@pytest.fixture
def nina(bob) -> ActorProfile:
    return make_profile(
        "nina",
        industry=bob.work_experience[0].industry,
        company="Acme",
        skills=["Python", "SQL", "AWS"],
        school="Stanford University",
        location="San Francisco, CA",
    )


@pytest.fixture
def network(alice, bob, carol, zed, ivan, tara, mike, nina) -> InMemoryGraph:
    """alice-ivan, alice-mike-nina; everyone else unconnected."""
    return build_graph(
        [alice, bob, carol, zed, ivan, tara, mike, nina],
        [("alice", "ivan"), ("alice", "mike", 0.9), ("mike", "nina", 0.8)],
    )
