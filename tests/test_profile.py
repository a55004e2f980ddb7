"""Tests for actor profile parsing."""

from __future__ import annotations

from datetime import date

import pytest

from bridgepath.profile import ActorProfile, infer_seniority, parse_date, total_years
from bridgepath.types import Seniority

from .conftest import make_profile


class TestFromDict:
    """Loading profiles from extracted JSON."""

    def test_camel_case_keys(self):
        """Both camelCase and snake_case inputs are accepted."""
        p = ActorProfile.from_dict(
            {
                "publicId": "jdoe",
                "name": "Jane Doe",
                "workExperience": [
                    {"company": "Acme", "title": "Senior Engineer", "industry": "Software", "startDate": "2019-03"}
                ],
                "education": [{"school": "MIT", "degree": "BS"}],
                "skills": ["Go", {"name": "Rust", "yearsOfExperience": 2}],
            }
        )
        assert p.id == "jdoe"
        assert p.current_company == "Acme"
        assert p.work_experience[0].start == "2019-03"
        assert p.skill_names() == {"go", "rust"}
        assert p.skills[1].years == 2.0
        assert p.metadata.seniority == Seniority.SENIOR

    def test_missing_id(self):
        """An actor without an id is rejected."""
        with pytest.raises(ValueError, match="missing id"):
            ActorProfile.from_dict({"name": "Nobody"})

    def test_round_trip(self, alice):
        """to_dict output loads back to an equal profile."""
        assert ActorProfile.from_dict(alice.to_dict()) == alice

    def test_display_name_falls_back_to_id(self):
        """Nameless actors display their id."""
        assert ActorProfile(id="x1").display_name == "x1"


class TestDerivedFields:
    """Helpers used by scoring and sampling."""

    def test_work_skills_count(self):
        """Skills listed on a role are part of the skill set."""
        p = ActorProfile.from_dict({"id": "a", "work_experience": [{"company": "Acme", "skills": ["Kafka"]}]})
        assert "kafka" in p.skill_names()

    def test_latest_start(self):
        """Most recent role start."""
        p = ActorProfile.from_dict(
            {"id": "a", "work_experience": [{"company": "B", "start": "2018"}, {"company": "C", "start": "2021-06"}]}
        )
        assert p.latest_start() == date(2021, 6, 1)

    def test_completeness(self, alice):
        """Roles count double."""
        assert alice.completeness() == 3 + 2 + 1

    def test_fingerprint_changes_with_content(self, alice):
        """Different data, different fingerprint."""
        moved = make_profile(
            "alice",
            industry="Software Development",
            company="Acme",
            skills=["Python", "SQL", "AWS"],
            school="Stanford University",
            location="Seattle, WA",
        )
        assert moved.fingerprint() != alice.fingerprint()


class TestHelpers:
    """Dates and seniority."""

    @pytest.mark.parametrize(
        "value,expected",
        [("2020", date(2020, 1, 1)), ("2020-05", date(2020, 5, 1)), ("2020-05-17", date(2020, 5, 17)), ("soon", None)],
    )
    def test_parse_date(self, value, expected):
        """Year, year-month and full dates."""
        assert parse_date(value) == expected

    def test_present(self):
        """'Present' means today."""
        today = date(2024, 1, 1)
        assert parse_date("Present", today=today) == today

    @pytest.mark.parametrize(
        "title,level",
        [("VP of Engineering", Seniority.EXECUTIVE), ("Engineering Manager", Seniority.LEAD), ("Sr. Developer", Seniority.SENIOR), ("Junior Analyst", Seniority.ENTRY), ("Developer", Seniority.MID), ("", Seniority.UNKNOWN)],
    )
    def test_infer_seniority(self, title, level):
        """Title keywords map to levels."""
        assert infer_seniority(title) == level

    def test_total_years(self):
        """Durations are summed across roles."""
        p = ActorProfile.from_dict(
            {"id": "a", "work_experience": [{"company": "B", "start": "2010-01", "end": "2015-01"}, {"company": "C", "start": "2015-01", "end": "2020-01"}]}
        )
        assert total_years(p.work_experience) == pytest.approx(10.0, abs=0.1)
