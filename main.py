"""CLI entry point for the matching engine."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Any

import yaml

from src.core.config import Settings
from src.core.db import init_db
from src.core.errors import ComputationError, StoreError
from src.core.schemas import (
    Actor,
    AssignmentStatus,
    AssignmentType,
    JobPost,
    TalentProfile,
    TransitionResult,
)
from src.lifecycle.service import EngagementService
from src.matching.profit import estimate_profit
from src.matching.scorer import match_score_label, score_breakdown
from src.store.sqlite import SqliteRecordStore


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config",
        default="config/settings.yaml",
        help="Path to settings YAML file (default: config/settings.yaml)",
    )
    common.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )

    acting = argparse.ArgumentParser(add_help=False)
    acting.add_argument("--user", required=True, help="Acting user id")
    acting.add_argument("--role", default="user", help="Acting user role (default: user)")

    parser = argparse.ArgumentParser(
        description="Business matching engine - score, recommend and contract job/talent pairs",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    load_parser = subparsers.add_parser(
        "load-data", parents=[common], help="Load jobs and talent profiles from YAML",
    )
    load_parser.add_argument("path", help="YAML file with job_posts and talent_profiles lists")

    score_parser = subparsers.add_parser("score", parents=[common], help="Score a job/talent pair")
    score_parser.add_argument("--job", required=True, help="Job post id")
    score_parser.add_argument("--talent", required=True, help="Talent profile id")

    recommend_parser = subparsers.add_parser(
        "recommend", parents=[common], help="Show recommended pairs for a user",
    )
    recommend_parser.add_argument("--user", required=True, help="Viewing user id")

    propose_parser = subparsers.add_parser(
        "propose", parents=[common, acting], help="Propose a match",
    )
    propose_parser.add_argument("--job", required=True, help="Job post id")
    propose_parser.add_argument("--talent", required=True, help="Talent profile id")
    propose_parser.add_argument("--message", default=None, help="Optional message")

    for name, help_text in (("accept", "Accept a pending match"), ("reject", "Reject a pending match")):
        p = subparsers.add_parser(name, parents=[common, acting], help=help_text)
        p.add_argument("match_id")

    contract_parser = subparsers.add_parser(
        "contract", parents=[common, acting], help="Turn an accepted match into an assignment",
    )
    contract_parser.add_argument("match_id")
    contract_parser.add_argument("--notes", default="", help="Contract notes")
    contract_parser.add_argument(
        "--type",
        choices=[t.value for t in AssignmentType],
        default=None,
        help="Assignment type (default from settings)",
    )

    for name in ("pause", "resume", "complete"):
        p = subparsers.add_parser(name, parents=[common, acting], help=f"{name.capitalize()} an assignment")
        p.add_argument("assignment_id")

    assignments_parser = subparsers.add_parser(
        "assignments", parents=[common], help="List a user's assignments and profit",
    )
    assignments_parser.add_argument("--user", required=True, help="User id")
    assignments_parser.add_argument(
        "--status", choices=[s.value for s in AssignmentStatus], default=None,
    )

    return parser.parse_args(argv)


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def load_data(store: SqliteRecordStore, path: str | Path) -> tuple[int, int]:
    """Insert job posts and talent profiles from a YAML file. Returns counts."""
    path = Path(path)
    if not path.exists():
        msg = f"Data file not found: {path}"
        raise FileNotFoundError(msg)
    raw: dict[str, Any] = yaml.safe_load(path.read_text()) or {}
    jobs = [JobPost.model_validate(j) for j in raw.get("job_posts", [])]
    talents = [TalentProfile.model_validate(t) for t in raw.get("talent_profiles", [])]

    async def _insert() -> None:
        for job in jobs:
            await store.insert("job_posts", job.to_record())
        for talent in talents:
            await store.insert("talent_profiles", talent.to_record())

    asyncio.run(_insert())
    return len(jobs), len(talents)


def report(result: TransitionResult) -> int:
    """Print a transition outcome. Returns the process exit code."""
    if result.rejection is not None:
        print(f"Rejected ({result.rejection.reason.value}): {result.rejection.message}", file=sys.stderr)
        return 1
    if result.error is not None:
        print(f"Store error: {result.error}", file=sys.stderr)
        return 2
    if result.match is not None:
        m = result.match
        print(f"Match {m.id}: {m.status.value}"
              + (f" ({m.assignment_type.value})" if m.assignment_type else ""))
    if result.assignment is not None:
        a = result.assignment
        print(f"Assignment {a.id}: {a.status.value}, monthly profit {a.monthly_profit}, "
              f"total profit {a.total_profit}")
    return 0


async def run(args: argparse.Namespace, settings: Settings, service: EngagementService) -> int:
    """Dispatch a service-backed subcommand."""
    command = args.command

    if command == "score":
        job = await service.get_job(args.job)
        talent = await service.get_talent(args.talent)
        if job is None or talent is None:
            print("Error: job or talent not found", file=sys.stderr)
            return 1
        breakdown = score_breakdown(job, talent, settings.matching.weights)
        profit, each_profit = estimate_profit(job, talent, settings.contract.profit_split)
        print(f"Score: {breakdown.total} ({match_score_label(breakdown.total)})")
        print(f"  Skills: {breakdown.skills:.1f}  Carriers: {breakdown.carriers:.1f}  "
              f"Work type: {breakdown.work_type:.1f}  Budget: {breakdown.budget:.1f}")
        print(f"  Profit: {profit}  Each side: {each_profit}")
        return 0

    if command == "recommend":
        recs = await service.recommendations(args.user, settings.matching)
        if not recs:
            print("No recommendations.")
        for r in recs:
            print(f"{r.score:3d}  {r.type.value:15s}  {r.job.id} ({r.job.title}) x "
                  f"{r.talent.id} ({r.talent.name})")
        return 0

    if command == "assignments":
        status = AssignmentStatus(args.status) if args.status else None
        for a in await service.assignments_for_user(args.user, status):
            side = "client" if a.client_user_id == args.user else "talent"
            print(f"{a.id}  {a.status.value:9s}  {side:6s}  match={a.match_id}  "
                  f"monthly={a.monthly_profit}  total={a.total_profit}")
        summary = await service.profit_summary(args.user)
        print(f"Active: {summary.active}  Paused: {summary.paused}  "
              f"Completed: {summary.completed}  Total profit: {summary.total_profit}")
        return 0

    actor = Actor(id=args.user, role=args.role)
    if command == "propose":
        result = await service.propose(actor, args.job, args.talent, args.message)
    elif command == "accept":
        result = await service.accept(actor, args.match_id)
    elif command == "reject":
        result = await service.reject(actor, args.match_id)
    elif command == "contract":
        assignment_type = AssignmentType(args.type) if args.type else None
        result = await service.create_contract(actor, args.match_id, args.notes, assignment_type)
    elif command == "pause":
        result = await service.pause(actor, args.assignment_id)
    elif command == "resume":
        result = await service.resume(actor, args.assignment_id)
    else:
        result = await service.complete(actor, args.assignment_id)
    return report(result)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    setup_logging(args.verbose)

    try:
        settings = Settings.from_yaml(args.config)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        sys.exit(1)

    conn = init_db(settings.database.path)
    store = SqliteRecordStore(conn)
    try:
        if args.command == "load-data":
            jobs, talents = load_data(store, args.path)
            print(f"Loaded {jobs} job posts and {talents} talent profiles.")
            code = 0
        else:
            service = EngagementService(store, settings.contract)
            code = asyncio.run(run(args, settings, service))
    except (FileNotFoundError, ValueError, ComputationError, StoreError) as e:
        print(f"Error: {e}", file=sys.stderr)
        code = 1
    finally:
        conn.close()
    sys.exit(code)


if __name__ == "__main__":
    main()
