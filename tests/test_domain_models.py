"""Unit tests for domain models and the domain vocabulary."""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from jobmatch.domain.models import (
    UNBOUNDED_EXPERIENCE,
    ManagementInterest,
    MatchRecord,
    NormalizedJob,
    NotificationHistoryEntry,
    RawJob,
    UserPreference,
    UserStatus,
)
from jobmatch.domain.vocabulary import all_domain_ids, categories, resolve_domain


class TestUserPreference:
    """Tests for UserPreference model."""

    def test_valid_user(self):
        user = UserPreference(
            user_id="u-1",
            status="experience_position",
            min_experience=2,
            max_experience=5,
            management_interest="no_management",
            domains=["software", "devops"],
            locations=["tel_aviv", "remote"],
        )

        assert user.status is UserStatus.EXPERIENCE_POSITION
        assert user.management_interest is ManagementInterest.NO_MANAGEMENT
        assert user.domains == frozenset({"software", "devops"})
        assert user.locations == frozenset({"tel_aviv", "remote"})

    def test_defaults_are_open(self):
        """Test that absent preference sets are empty (open to all)."""
        user = UserPreference(user_id="u-1", status="student_position")

        assert user.domains == frozenset()
        assert user.locations == frozenset()
        assert user.management_level == frozenset()
        assert user.management_interest is ManagementInterest.NONE
        assert user.min_experience is None
        assert user.max_experience is None

    def test_swapped_experience_bounds_are_reordered(self):
        user = UserPreference(
            user_id="u-1", status="experience_position", min_experience=7, max_experience=2
        )

        assert user.min_experience == 2
        assert user.max_experience == 7

    def test_negative_experience_rejected(self):
        with pytest.raises(ValidationError):
            UserPreference(user_id="u-1", status="experience_position", min_experience=-1)

    def test_unknown_status_rejected(self):
        with pytest.raises(ValidationError):
            UserPreference(user_id="u-1", status="freelancer")

    def test_empty_user_id_rejected(self):
        with pytest.raises(ValidationError):
            UserPreference(user_id="", status="student_position")

    def test_quoted_array_items_are_stripped(self):
        """Test that stray JSON quoting in exported arrays is removed."""
        user = UserPreference(
            user_id="u-1",
            status="experience_position",
            locations=['"tel_aviv"', ' "haifa" ', '""'],
        )

        assert user.locations == frozenset({"tel_aviv", "haifa"})

    def test_blank_management_interest_is_none(self):
        for value in (None, "", '""', "  "):
            user = UserPreference(
                user_id="u-1", status="experience_position", management_interest=value
            )
            assert user.management_interest is ManagementInterest.NONE

    def test_quoted_management_interest(self):
        user = UserPreference(
            user_id="u-1", status="experience_position", management_interest='"management_only"'
        )

        assert user.management_interest is ManagementInterest.MANAGEMENT_ONLY

    def test_blank_degree_becomes_none(self):
        user = UserPreference(user_id="u-1", status="student_position", degree="   ")

        assert user.degree is None


class TestRawJob:
    """Tests for RawJob model."""

    def test_job_id_prefers_source_url(self):
        raw_job = RawJob(source_url="https://a.example.com/1", url="https://b.example.com/1")

        assert raw_job.job_id == "https://a.example.com/1"

    def test_job_id_falls_back_to_url(self):
        raw_job = RawJob(url="https://b.example.com/1")

        assert raw_job.job_id == "https://b.example.com/1"

    def test_job_id_missing(self):
        assert RawJob(title="Orphan").job_id is None

    def test_text_fields_are_stripped_and_blank_is_none(self):
        raw_job = RawJob(title="  Backend Engineer  ", leadership_level="   ", locations=None)

        assert raw_job.title == "Backend Engineer"
        assert raw_job.leadership_level is None
        assert raw_job.locations is None

    def test_scalar_experience_is_coerced_to_text(self):
        raw_job = RawJob(experience_level=3)

        assert raw_job.experience_level == "3"


class TestNormalizedJob:
    """Tests for NormalizedJob model."""

    def test_defaults(self):
        job = NormalizedJob(id="j-1")

        assert job.min_exp == 0
        assert job.max_exp == UNBOUNDED_EXPERIENCE
        assert job.is_student_job is False
        assert job.leadership_level is None
        assert job.experience_levels is None

    def test_accepts_no_experience_for_range(self):
        assert NormalizedJob(id="j-1", min_exp=0, max_exp=2).accepts_no_experience
        assert not NormalizedJob(id="j-1", min_exp=1, max_exp=3).accepts_no_experience

    def test_accepts_no_experience_for_discrete_levels(self):
        assert NormalizedJob(id="j-1", experience_levels=frozenset({0, 1})).accepts_no_experience
        assert not NormalizedJob(id="j-1", experience_levels=frozenset({2})).accepts_no_experience
        assert not NormalizedJob(id="j-1", experience_levels=frozenset()).accepts_no_experience


class TestHistoryAndMatchRecords:
    """Tests for NotificationHistoryEntry and MatchRecord."""

    def test_history_sent_at_is_normalized_to_utc(self):
        ist = timezone(timedelta(hours=2))
        entry = NotificationHistoryEntry(
            user_id="u-1", job_id="j-1", sent_at=datetime(2025, 1, 1, 1, 0, tzinfo=ist)
        )

        assert entry.sent_at == datetime(2024, 12, 31, 23, 0, tzinfo=timezone.utc)

    def test_naive_sent_at_is_treated_as_utc(self):
        entry = NotificationHistoryEntry(
            user_id="u-1", job_id="j-1", sent_at=datetime(2025, 1, 1, 9, 0)
        )

        assert entry.sent_at.tzinfo == timezone.utc

    def test_match_record_defaults(self):
        record = MatchRecord(
            user_id="u-1", job_id="j-1", matched_at=datetime(2025, 1, 1, tzinfo=timezone.utc)
        )

        assert record.status == "new"
        assert record.title == ""
        assert record.url == ""


class TestVocabulary:
    """Tests for the canonical domain vocabulary."""

    def test_resolve_by_title_case_insensitive(self):
        assert resolve_domain("Data Science") == "data_science"
        assert resolve_domain("data science") == "data_science"
        assert resolve_domain("  DEVOPS ") == "devops"

    def test_resolve_by_canonical_id(self):
        assert resolve_domain("machine_learning_ai") == "machine_learning_ai"

    def test_resolve_titles_with_punctuation(self):
        assert resolve_domain("Data Analytics / BI") == "data_analytics_bi"
        assert resolve_domain("UX/UI Design") == "ux_ui_design"

    def test_partial_token_does_not_resolve(self):
        assert resolve_domain("Data") is None
        assert resolve_domain("Soft") is None

    def test_blank_does_not_resolve(self):
        assert resolve_domain("") is None
        assert resolve_domain(None) is None

    def test_ids_are_unique_and_grouped(self):
        grouped = categories()
        ids = [entry.id for entries in grouped.values() for entry in entries]

        assert len(ids) == len(set(ids))
        assert set(ids) == all_domain_ids()
        assert "software" in {entry.id for entry in grouped["R&D / Engineering"]}
