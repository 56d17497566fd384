"""Tests for the SQLite storage layer: init, upsert, fetch pages."""

import sqlite3
from datetime import datetime, timedelta, timezone

import pytest

from src.core.config import CandidateSearchFilters, JobSearchFilters
from src.core.db import (
    fetch_active_jobs,
    fetch_candidate_page,
    fetch_job_page,
    get_candidate_profile,
    init_db,
    upsert_candidate,
    upsert_job,
)
from src.core.errors import StorageError
from src.core.schemas import CandidateRecord, EducationLevel, JobRecord

NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)


def _candidate(candidate_id: str = "c1", **kw: object) -> CandidateRecord:
    defaults: dict[str, object] = {
        "id": candidate_id,
        "user_id": f"user-{candidate_id}",
        "created_at": NOW - timedelta(days=100),
        "updated_at": NOW - timedelta(days=1),
    }
    defaults.update(kw)
    return CandidateRecord(**defaults)  # type: ignore[arg-type]


def _job(job_id: str = "j1", **kw: object) -> JobRecord:
    defaults: dict[str, object] = {
        "id": job_id,
        "title": "Engineer",
        "company_name": "Acme",
        "created_at": NOW - timedelta(days=1),
    }
    defaults.update(kw)
    return JobRecord(**defaults)  # type: ignore[arg-type]


@pytest.fixture()
def db(tmp_path):  # type: ignore[no-untyped-def]
    """Provide a fresh SQLite connection per test."""
    conn = init_db(tmp_path / "test.db")
    yield conn
    conn.close()


def _candidate_ids(db, **filters: object) -> list[str]:  # type: ignore[no-untyped-def]
    page = fetch_candidate_page(db, CandidateSearchFilters(**filters), now=NOW)  # type: ignore[arg-type]
    return [c.id for c in page.records]


def _job_ids(db, **filters: object) -> list[str]:  # type: ignore[no-untyped-def]
    page = fetch_job_page(db, JobSearchFilters(**filters), now=NOW)  # type: ignore[arg-type]
    return [j.id for j in page.records]


class TestInitDb:
    def test_creates_tables(self, db) -> None:  # type: ignore[no-untyped-def]
        tables = {
            row[0]
            for row in db.execute(
                "SELECT name FROM sqlite_master WHERE type='table'"
            ).fetchall()
        }
        assert "candidate_profiles" in tables
        assert "jobs" in tables

    def test_idempotent(self, tmp_path) -> None:  # type: ignore[no-untyped-def]
        p = tmp_path / "double.db"
        init_db(p).close()
        init_db(p).close()


class TestRoundTrip:
    def test_candidate_fields_survive(self, db) -> None:  # type: ignore[no-untyped-def]
        original = _candidate(
            skills=["Python", "SQL"],
            preferred_job_type=["remote"],
            education_level=EducationLevel.MASTER,
            experience_years=4.5,
            resume_url="https://cdn.example.com/cv.pdf",
        )
        upsert_candidate(db, original)
        assert get_candidate_profile(db, "user-c1") == original

    def test_job_fields_survive(self, db) -> None:  # type: ignore[no-untyped-def]
        original = _job(
            skills_required=["React", "Node"],
            education_required=EducationLevel.BACHELOR,
            salary_min=100,
            salary_max=200,
        )
        upsert_job(db, original)
        assert fetch_active_jobs(db) == [original]

    def test_upsert_replaces(self, db) -> None:  # type: ignore[no-untyped-def]
        upsert_candidate(db, _candidate(location="Pune"))
        upsert_candidate(db, _candidate(location="Delhi"))
        count = db.execute("SELECT COUNT(*) FROM candidate_profiles").fetchone()[0]
        assert count == 1
        profile = get_candidate_profile(db, "user-c1")
        assert profile is not None
        assert profile.location == "Delhi"

    def test_missing_profile(self, db) -> None:  # type: ignore[no-untyped-def]
        assert get_candidate_profile(db, "nobody") is None


class TestFetchActiveJobs:
    def test_newest_first_and_active_only(self, db) -> None:  # type: ignore[no-untyped-def]
        upsert_job(db, _job("old", created_at=NOW - timedelta(days=9)))
        upsert_job(db, _job("new", created_at=NOW - timedelta(hours=1)))
        upsert_job(db, _job("closed", is_active=False))
        assert [j.id for j in fetch_active_jobs(db)] == ["new", "old"]


class TestFetchCandidatePage:
    def test_onboarding_required(self, db) -> None:  # type: ignore[no-untyped-def]
        upsert_candidate(db, _candidate("done"))
        upsert_candidate(db, _candidate("pending", onboarding_completed=False))
        assert _candidate_ids(db) == ["done"]

    def test_keywords_case_insensitive(self, db) -> None:  # type: ignore[no-untyped-def]
        upsert_candidate(db, _candidate("a", headline="Senior PYTHON developer"))
        upsert_candidate(db, _candidate("b", about="I write python daily"))
        upsert_candidate(db, _candidate("c", profile_summary="Java person"))
        assert sorted(_candidate_ids(db, keywords="Python")) == ["a", "b"]

    def test_salary_overlap(self, db) -> None:  # type: ignore[no-untyped-def]
        upsert_candidate(db, _candidate("inside", expected_salary_min=6, expected_salary_max=8))
        upsert_candidate(db, _candidate("low", expected_salary_min=1, expected_salary_max=4))
        upsert_candidate(db, _candidate("edge", expected_salary_min=10, expected_salary_max=12))
        assert sorted(_candidate_ids(db, salary_min=5, salary_max=10)) == ["edge", "inside"]

    def test_skills_overlap_any(self, db) -> None:  # type: ignore[no-untyped-def]
        upsert_candidate(db, _candidate("py", skills=["python", "Docker"]))
        upsert_candidate(db, _candidate("java", skills=["Java"]))
        upsert_candidate(db, _candidate("none"))
        assert _candidate_ids(db, skills=["Docker", "Go"]) == ["py"]

    def test_education_set(self, db) -> None:  # type: ignore[no-untyped-def]
        upsert_candidate(db, _candidate("b", education_level=EducationLevel.BACHELOR))
        upsert_candidate(db, _candidate("m", education_level=EducationLevel.MASTER))
        upsert_candidate(db, _candidate("none"))
        assert _candidate_ids(db, education_levels=["master"]) == ["m"]

    def test_freshness(self, db) -> None:  # type: ignore[no-untyped-def]
        upsert_candidate(db, _candidate("fresh", updated_at=NOW - timedelta(days=3)))
        upsert_candidate(db, _candidate("stale", updated_at=NOW - timedelta(days=45)))
        assert _candidate_ids(db, profile_freshness="30d") == ["fresh"]
        assert sorted(_candidate_ids(db, profile_freshness="90d")) == ["fresh", "stale"]

    def test_sort_experience_nulls_last(self, db) -> None:  # type: ignore[no-untyped-def]
        upsert_candidate(db, _candidate("none"))
        upsert_candidate(db, _candidate("two", experience_years=2))
        upsert_candidate(db, _candidate("nine", experience_years=9))
        assert _candidate_ids(db, sort_by="experience") == ["nine", "two", "none"]

    def test_default_sort_recently_updated(self, db) -> None:  # type: ignore[no-untyped-def]
        upsert_candidate(db, _candidate("older", updated_at=NOW - timedelta(days=5)))
        upsert_candidate(db, _candidate("newer", updated_at=NOW - timedelta(days=1)))
        assert _candidate_ids(db) == ["newer", "older"]

    def test_pagination(self, db) -> None:  # type: ignore[no-untyped-def]
        for i in range(7):
            upsert_candidate(db, _candidate(f"c{i}", updated_at=NOW - timedelta(days=i)))
        page = fetch_candidate_page(db, CandidateSearchFilters(page=2, page_size=3), now=NOW)
        assert page.total_count == 7
        assert [c.id for c in page.records] == ["c3", "c4", "c5"]
        last = fetch_candidate_page(db, CandidateSearchFilters(page=3, page_size=3), now=NOW)
        assert [c.id for c in last.records] == ["c6"]


class TestFetchJobPage:
    def test_inactive_excluded(self, db) -> None:  # type: ignore[no-untyped-def]
        upsert_job(db, _job("open"))
        upsert_job(db, _job("closed", is_active=False))
        assert _job_ids(db) == ["open"]

    def test_keywords_match_skills(self, db) -> None:  # type: ignore[no-untyped-def]
        upsert_job(db, _job("skill", skills_required=["ReactJS"]))
        upsert_job(db, _job("title", title="React Developer"))
        upsert_job(db, _job("company", company_name="Reactive Labs"))
        upsert_job(db, _job("other", title="Accountant"))
        assert sorted(_job_ids(db, keywords="react")) == ["company", "skill", "title"]

    def test_experience_overlap(self, db) -> None:  # type: ignore[no-untyped-def]
        upsert_job(db, _job("junior", experience_min=0, experience_max=2))
        upsert_job(db, _job("mid", experience_min=3, experience_max=6))
        upsert_job(db, _job("open", experience_min=5))
        upsert_job(db, _job("senior", experience_min=10, experience_max=15))
        assert sorted(_job_ids(db, experience_min=2, experience_max=5)) == ["junior", "mid", "open"]

    def test_salary_overlap(self, db) -> None:  # type: ignore[no-untyped-def]
        upsert_job(db, _job("fits", salary_min=600_000, salary_max=900_000))
        upsert_job(db, _job("cheap", salary_min=100_000, salary_max=300_000))
        assert _job_ids(db, salary_min=800_000) == ["fits"]

    def test_posted_within(self, db) -> None:  # type: ignore[no-untyped-def]
        upsert_job(db, _job("today", created_at=NOW - timedelta(hours=2)))
        upsert_job(db, _job("week", created_at=NOW - timedelta(days=5)))
        assert _job_ids(db, posted_within="24h") == ["today"]
        assert _job_ids(db, posted_within="7d") == ["today", "week"]

    def test_sort_salary_high(self, db) -> None:  # type: ignore[no-untyped-def]
        upsert_job(db, _job("none"))
        upsert_job(db, _job("low", salary_max=10))
        upsert_job(db, _job("high", salary_max=99))
        assert _job_ids(db, sort_by="salary_high") == ["high", "low", "none"]

    def test_page_size_bounds(self) -> None:
        with pytest.raises(ValueError):
            JobSearchFilters(page_size=101)


class TestUnicodeCaseFolding:
    """Text filters fold case beyond ASCII, matching the scorers' comparisons."""

    @pytest.fixture()
    def seeded(self, db):  # type: ignore[no-untyped-def]
        upsert_candidate(db, _candidate(
            "de",
            location="MÜNCHEN",
            headline="Ingénieur ÉLECTRIQUE",
            skills=["Ölhydraulik"],
            preferred_job_type=["TEILZEIT"],
        ))
        upsert_candidate(db, _candidate("other", location="Berlin", skills=["Java"]))
        upsert_job(db, _job("fr", title="ÉLECTRICIEN", location="Zürich", skills_required=["ÉTABLI"]))
        upsert_job(db, _job("other", title="Accountant"))
        return db

    def test_candidate_location(self, seeded) -> None:  # type: ignore[no-untyped-def]
        assert _candidate_ids(seeded, location="münchen") == ["de"]

    def test_candidate_keywords(self, seeded) -> None:  # type: ignore[no-untyped-def]
        assert _candidate_ids(seeded, keywords="électrique") == ["de"]

    def test_candidate_skill_tags(self, seeded) -> None:  # type: ignore[no-untyped-def]
        assert _candidate_ids(seeded, skills=["ölhydraulik"]) == ["de"]

    def test_work_preference_tags(self, seeded) -> None:  # type: ignore[no-untyped-def]
        assert _candidate_ids(seeded, work_preferences=["teilzeit"]) == ["de"]

    def test_job_title_keywords(self, seeded) -> None:  # type: ignore[no-untyped-def]
        assert _job_ids(seeded, keywords="électricien") == ["fr"]

    def test_job_skill_keywords(self, seeded) -> None:  # type: ignore[no-untyped-def]
        assert _job_ids(seeded, keywords="établi") == ["fr"]

    def test_job_location(self, seeded) -> None:  # type: ignore[no-untyped-def]
        assert _job_ids(seeded, location="ZÜRICH") == ["fr"]

    def test_sharp_s_folds_to_ss(self, db) -> None:  # type: ignore[no-untyped-def]
        upsert_candidate(db, _candidate("street", location="Hauptstraße 1"))
        assert _candidate_ids(db, location="STRASSE") == ["street"]


class TestStorageErrors:
    def test_closed_connection_raises_storage_error(self, tmp_path) -> None:  # type: ignore[no-untyped-def]
        conn = init_db(tmp_path / "closed.db")
        conn.close()
        with pytest.raises(StorageError):
            fetch_active_jobs(conn)

    def test_missing_table_raises_storage_error(self) -> None:
        conn = sqlite3.connect(":memory:")
        conn.row_factory = sqlite3.Row
        with pytest.raises(StorageError, match="Storage query failed"):
            fetch_job_page(conn, JobSearchFilters(), now=NOW)
        conn.close()
