"""SQLite storage collaborator: candidate profiles and job postings.

Implements fetch-page semantics (records + total count) on top of the
predicates built in src.core.query. Array columns are JSON text.
"""

import json
import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Any

from src.core.config import CandidateSearchFilters, JobSearchFilters
from src.core.errors import StorageError
from src.core.query import (
    Query,
    build_candidate_query,
    build_job_query,
    fold_case,
    format_timestamp,
    page_bounds,
)
from src.core.schemas import CandidatePage, CandidateRecord, JobPage, JobRecord

logger = logging.getLogger(__name__)

_CANDIDATES_TABLE = """
CREATE TABLE IF NOT EXISTS candidate_profiles (
    id                   TEXT    PRIMARY KEY,
    user_id              TEXT    NOT NULL DEFAULT '',
    full_name            TEXT,
    headline             TEXT,
    about                TEXT,
    profile_summary      TEXT,
    location             TEXT,
    experience_years     REAL,
    expected_salary_min  REAL,
    expected_salary_max  REAL,
    education_level      TEXT,
    skills               TEXT    NOT NULL DEFAULT '[]',
    preferred_job_type   TEXT    NOT NULL DEFAULT '[]',
    resume_url           TEXT,
    profile_photo_url    TEXT,
    onboarding_completed INTEGER NOT NULL DEFAULT 1,
    created_at           TEXT    NOT NULL,
    updated_at           TEXT    NOT NULL
);
"""

_JOBS_TABLE = """
CREATE TABLE IF NOT EXISTS jobs (
    id                 TEXT    PRIMARY KEY,
    title              TEXT    NOT NULL DEFAULT '',
    company_name       TEXT    NOT NULL DEFAULT '',
    location           TEXT,
    employment_type    TEXT,
    work_mode          TEXT,
    skills_required    TEXT    NOT NULL DEFAULT '[]',
    experience_min     REAL,
    experience_max     REAL,
    salary_min         REAL,
    salary_max         REAL,
    education_required TEXT,
    description        TEXT    NOT NULL DEFAULT '',
    is_active          INTEGER NOT NULL DEFAULT 1,
    created_at         TEXT    NOT NULL
);
"""

_CANDIDATES_USER_INDEX = """
CREATE INDEX IF NOT EXISTS idx_candidate_profiles_user_id
    ON candidate_profiles (user_id);
"""


def init_db(path: str | Path) -> sqlite3.Connection:
    """Create the database and tables, returning a connection.

    The connection carries a `casefold` SQL function used by the search predicates.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(path))
    conn.row_factory = sqlite3.Row
    conn.create_function("casefold", 1, fold_case, deterministic=True)
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute(_CANDIDATES_TABLE)
    conn.execute(_JOBS_TABLE)
    conn.execute(_CANDIDATES_USER_INDEX)
    conn.commit()
    return conn


def upsert_candidate(conn: sqlite3.Connection, record: CandidateRecord) -> None:
    """Insert a candidate profile, replacing any existing row with the same id."""
    conn.execute(
        """
        INSERT OR REPLACE INTO candidate_profiles
            (id, user_id, full_name, headline, about, profile_summary, location,
             experience_years, expected_salary_min, expected_salary_max,
             education_level, skills, preferred_job_type, resume_url,
             profile_photo_url, onboarding_completed, created_at, updated_at)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (
            record.id,
            record.user_id,
            record.full_name,
            record.headline,
            record.about,
            record.profile_summary,
            record.location,
            record.experience_years,
            record.expected_salary_min,
            record.expected_salary_max,
            record.education_level.value if record.education_level else None,
            json.dumps(record.skills),
            json.dumps(record.preferred_job_type),
            record.resume_url,
            record.profile_photo_url,
            int(record.onboarding_completed),
            format_timestamp(record.created_at),
            format_timestamp(record.updated_at),
        ),
    )
    conn.commit()


def upsert_job(conn: sqlite3.Connection, job: JobRecord) -> None:
    """Insert a job posting, replacing any existing row with the same id."""
    conn.execute(
        """
        INSERT OR REPLACE INTO jobs
            (id, title, company_name, location, employment_type, work_mode,
             skills_required, experience_min, experience_max, salary_min,
             salary_max, education_required, description, is_active, created_at)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (
            job.id,
            job.title,
            job.company_name,
            job.location,
            job.employment_type,
            job.work_mode,
            json.dumps(job.skills_required),
            job.experience_min,
            job.experience_max,
            job.salary_min,
            job.salary_max,
            job.education_required.value if job.education_required else None,
            job.description,
            int(job.is_active),
            format_timestamp(job.created_at),
        ),
    )
    conn.commit()


def get_candidate_profile(conn: sqlite3.Connection, user_id: str) -> CandidateRecord | None:
    """Return the candidate profile owned by a user, or None if they have none yet."""
    row = _fetch_one(
        conn,
        "SELECT * FROM candidate_profiles WHERE user_id = ? LIMIT 1",
        (user_id,),
    )
    return _candidate_from_row(row) if row is not None else None


def fetch_active_jobs(conn: sqlite3.Connection) -> list[JobRecord]:
    """Return every active job, most recently created first."""
    rows = _fetch_all(
        conn,
        "SELECT * FROM jobs WHERE is_active = 1 ORDER BY created_at DESC, id ASC",
        (),
    )
    return [_job_from_row(r) for r in rows]


def fetch_candidate_page(
    conn: sqlite3.Connection,
    filters: CandidateSearchFilters,
    now: datetime | None = None,
) -> CandidatePage:
    """Run a recruiter candidate search and return the requested page."""
    query = build_candidate_query(filters, now)
    total, rows = _run_paged(conn, "candidate_profiles", query, filters.page, filters.page_size)
    return CandidatePage(records=[_candidate_from_row(r) for r in rows], total_count=total)


def fetch_job_page(
    conn: sqlite3.Connection,
    filters: JobSearchFilters,
    now: datetime | None = None,
) -> JobPage:
    """Run a job board search and return the requested page."""
    query = build_job_query(filters, now)
    total, rows = _run_paged(conn, "jobs", query, filters.page, filters.page_size)
    return JobPage(records=[_job_from_row(r) for r in rows], total_count=total)


def _run_paged(
    conn: sqlite3.Connection,
    table: str,
    query: Query,
    page: int,
    page_size: int,
) -> tuple[int, list[sqlite3.Row]]:
    offset, limit = page_bounds(page, page_size)
    where = query.where_sql()
    count_row = _fetch_one(conn, f"SELECT COUNT(*) FROM {table} {where}", query.params)
    total = count_row[0] if count_row is not None else 0
    rows = _fetch_all(
        conn,
        f"SELECT * FROM {table} {where} {query.order_sql()} LIMIT ? OFFSET ?",
        [*query.params, limit, offset],
    )
    logger.debug("%s: %d matching rows, returning %d (page %d)", table, total, len(rows), page)
    return total, rows


def _fetch_one(conn: sqlite3.Connection, sql: str, params: Any) -> sqlite3.Row | None:
    try:
        return conn.execute(sql, params).fetchone()
    except sqlite3.Error as e:
        msg = f"Storage query failed: {e}"
        raise StorageError(msg) from e


def _fetch_all(conn: sqlite3.Connection, sql: str, params: Any) -> list[sqlite3.Row]:
    try:
        return conn.execute(sql, params).fetchall()
    except sqlite3.Error as e:
        msg = f"Storage query failed: {e}"
        raise StorageError(msg) from e


def _candidate_from_row(row: sqlite3.Row) -> CandidateRecord:
    data = dict(row)
    data["skills"] = json.loads(data["skills"])
    data["preferred_job_type"] = json.loads(data["preferred_job_type"])
    data["onboarding_completed"] = bool(data["onboarding_completed"])
    return CandidateRecord.model_validate(data)


def _job_from_row(row: sqlite3.Row) -> JobRecord:
    data = dict(row)
    data["skills_required"] = json.loads(data["skills_required"])
    data["is_active"] = bool(data["is_active"])
    return JobRecord.model_validate(data)
