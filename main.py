"""CLI entry point for the matching engine."""

import argparse
import logging
import sys

from pydantic import ValidationError

from src.core.config import (
    CandidateSearchFilters,
    JobSearchFilters,
    RecommenderConfig,
    Settings,
)
from src.core.db import (
    fetch_active_jobs,
    fetch_candidate_page,
    fetch_job_page,
    get_candidate_profile,
    init_db,
    upsert_candidate,
    upsert_job,
)
from src.core.errors import TalentMatchError
from src.core.schemas import IdentityContext, Role
from src.pipeline.orchestrator import (
    export_json,
    recommend_for_user,
    search_candidates,
    search_jobs,
)


def _csv(value: str) -> list[str]:
    return [v.strip() for v in value.split(",") if v.strip()]


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        msg = f"must be at least 1, got {number}"
        raise argparse.ArgumentTypeError(msg)
    return number


def _add_common(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        default="config/settings.yaml",
        help="Path to settings YAML file (default: config/settings.yaml)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )


def _add_range_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--keywords", help="Free-text keyword search")
    parser.add_argument("--location", help="Location substring")
    parser.add_argument("--experience-min", type=float)
    parser.add_argument("--experience-max", type=float)
    parser.add_argument("--salary-min", type=float)
    parser.add_argument("--salary-max", type=float)
    parser.add_argument(
        "--education",
        type=_csv,
        default=[],
        help="Comma-separated education levels (e.g. bachelor,master)",
    )
    parser.add_argument("--page", type=int, default=1)
    parser.add_argument("--page-size", type=int, default=10)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Job board matching engine - recommend jobs and rank candidates",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # --- import subcommand ---
    import_parser = subparsers.add_parser(
        "import",
        help="Load candidates and jobs from a YAML fixture file into the database",
    )
    import_parser.add_argument("--file", required=True, help="Path to fixture YAML")
    _add_common(import_parser)

    # --- recommend subcommand ---
    recommend_parser = subparsers.add_parser(
        "recommend",
        help="Recommend jobs for a candidate user",
    )
    recommend_parser.add_argument("--user-id", required=True, help="Candidate's user id")
    recommend_parser.add_argument("--limit", type=_positive_int, help="Maximum number of jobs")
    _add_common(recommend_parser)

    # --- search-candidates subcommand ---
    candidates_parser = subparsers.add_parser(
        "search-candidates",
        help="Search and rank candidates as a recruiter",
    )
    _add_range_args(candidates_parser)
    candidates_parser.add_argument("--skills", type=_csv, default=[])
    candidates_parser.add_argument("--work-preferences", type=_csv, default=[])
    candidates_parser.add_argument("--freshness", choices=["7d", "30d", "90d"])
    candidates_parser.add_argument(
        "--sort",
        choices=["relevance", "experience", "salary_high", "salary_low", "recent"],
    )
    candidates_parser.add_argument("--user-id", default="cli", help="Caller's user id")
    candidates_parser.add_argument(
        "--role",
        default="recruiter",
        choices=[r.value for r in Role],
        help="Caller's role (default: recruiter)",
    )
    _add_common(candidates_parser)

    # --- search-jobs subcommand ---
    jobs_parser = subparsers.add_parser("search-jobs", help="Search the job board")
    _add_range_args(jobs_parser)
    jobs_parser.add_argument("--employment-types", type=_csv, default=[])
    jobs_parser.add_argument("--work-modes", type=_csv, default=[])
    jobs_parser.add_argument("--posted-within", choices=["24h", "7d", "30d", "90d"])
    jobs_parser.add_argument(
        "--sort",
        choices=["relevance", "recent", "salary_high", "salary_low"],
    )
    _add_common(jobs_parser)

    return parser.parse_args(argv)


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )


def cmd_import(args: argparse.Namespace, settings: Settings) -> None:
    """Handle import subcommand."""
    from src.core.fixtures import FixtureData

    data = FixtureData.from_yaml(args.file)
    conn = init_db(settings.database.path)
    try:
        for candidate in data.candidates:
            upsert_candidate(conn, candidate)
        for job in data.jobs:
            upsert_job(conn, job)
    finally:
        conn.close()
    print(f"Imported {len(data.candidates)} candidates and {len(data.jobs)} jobs "
          f"into {settings.database.path}")


def cmd_recommend(args: argparse.Namespace, settings: Settings) -> None:
    """Handle recommend subcommand."""
    config = settings.recommender
    if args.limit is not None:
        config = RecommenderConfig.model_validate(
            {**config.model_dump(), "result_limit": args.limit},
        )
    conn = init_db(settings.database.path)
    try:
        result = recommend_for_user(
            IdentityContext(user_id=args.user_id, role=Role.CANDIDATE),
            lambda user_id: get_candidate_profile(conn, user_id),
            lambda: fetch_active_jobs(conn),
            config,
        )
    finally:
        conn.close()
    print(export_json(result))


def cmd_search_candidates(args: argparse.Namespace, settings: Settings) -> None:
    """Handle search-candidates subcommand."""
    filters = CandidateSearchFilters(
        keywords=args.keywords,
        location=args.location,
        experience_min=args.experience_min,
        experience_max=args.experience_max,
        salary_min=args.salary_min,
        salary_max=args.salary_max,
        education_levels=args.education,
        skills=args.skills,
        work_preferences=args.work_preferences,
        profile_freshness=args.freshness,
        sort_by=args.sort,
        page=args.page,
        page_size=args.page_size,
    )
    conn = init_db(settings.database.path)
    try:
        result = search_candidates(
            IdentityContext(user_id=args.user_id, role=Role(args.role)),
            filters,
            lambda f: fetch_candidate_page(conn, f),
            settings.matcher,
        )
    finally:
        conn.close()
    print(export_json(result))


def cmd_search_jobs(args: argparse.Namespace, settings: Settings) -> None:
    """Handle search-jobs subcommand."""
    filters = JobSearchFilters(
        keywords=args.keywords,
        location=args.location,
        employment_types=args.employment_types,
        work_modes=args.work_modes,
        experience_min=args.experience_min,
        experience_max=args.experience_max,
        salary_min=args.salary_min,
        salary_max=args.salary_max,
        education_levels=args.education,
        posted_within=args.posted_within,
        sort_by=args.sort,
        page=args.page,
        page_size=args.page_size,
    )
    conn = init_db(settings.database.path)
    try:
        result = search_jobs(filters, lambda f: fetch_job_page(conn, f))
    finally:
        conn.close()
    print(export_json(result))


_COMMANDS = {
    "import": cmd_import,
    "recommend": cmd_recommend,
    "search-candidates": cmd_search_candidates,
    "search-jobs": cmd_search_jobs,
}


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    setup_logging(args.verbose)

    try:
        settings = Settings.from_yaml(args.config)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        _COMMANDS[args.command](args, settings)
    except (FileNotFoundError, ValidationError, TalentMatchError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
