"""CLI entrypoint for the site backlog."""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from pydantic import ValidationError

from ..core.config import ConfigError
from ..core.settings import get_settings
from ..core.types import JobOptions, JobStatus, TriageMeta, TriageState
from ..history import HistoryStore, digest
from ..jobs import Collaborators, EvidenceReplay, JobStore, create_runner, load_evidence
from ..scoring import score

# Load environment variables
load_dotenv()

TRIAGE_CHOICES = [state.value for state in TriageState] + ["none"]


def setup_logging(level: str = "INFO") -> None:
    """Setup logging configuration.

    Args:
        level: Logging level
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(
        level=numeric_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments.

    Returns:
        Parsed arguments
    """
    parser = argparse.ArgumentParser(
        description="Site Backlog - ranked, trackable issues from website audit evidence",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Rank issues from captured evidence
  site-backlog score evidence.json

  # Run captured evidence through the pipeline and record it in run history
  site-backlog record evidence.json --url https://www.example.com

  # Compare two runs of the same site
  site-backlog runs list --origin https://www.example.com
  site-backlog runs diff <base-run-id> <head-run-id>

  # Triage an issue by digest
  site-backlog triage set 3f2a9c0d41b7e6a1 planned
  site-backlog triage meta 3f2a9c0d41b7e6a1 --owner FE --estimate 4
        """,
    )

    parser.add_argument(
        "--database-url",
        type=str,
        help="History store URL (default: BACKLOG_DATABASE_URL or ./runs/index.db)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: BACKLOG_LOG_LEVEL or INFO)",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    score_cmd = commands.add_parser("score", help="Rank issues from an evidence file")
    score_cmd.add_argument("evidence", type=Path, help="Evidence JSON file")
    score_cmd.add_argument(
        "--triage",
        action="store_true",
        help="Annotate issues with their stored triage state",
    )

    record_cmd = commands.add_parser(
        "record", help="Run an evidence file through the pipeline and record the run"
    )
    record_cmd.add_argument("evidence", type=Path, help="Evidence JSON file")
    record_cmd.add_argument("--url", type=str, required=True, help="Site URL the evidence is for")
    record_cmd.add_argument("--config", type=Path, help="Path to config file")

    runs_cmd = commands.add_parser("runs", help="Run history")
    runs_sub = runs_cmd.add_subparsers(dest="runs_command", required=True)
    runs_list = runs_sub.add_parser("list", help="List recorded runs")
    runs_list.add_argument("--origin", type=str, help="Only runs for this origin")
    runs_diff = runs_sub.add_parser("diff", help="Compare two runs")
    runs_diff.add_argument("base", type=str, help="Base run id")
    runs_diff.add_argument("head", type=str, help="Head run id")

    triage_cmd = commands.add_parser("triage", help="Issue triage")
    triage_sub = triage_cmd.add_subparsers(dest="triage_command", required=True)
    triage_set = triage_sub.add_parser("set", help="Set or clear triage state")
    triage_set.add_argument("digest", type=str)
    triage_set.add_argument("state", type=str, choices=TRIAGE_CHOICES)
    triage_meta = triage_sub.add_parser("meta", help="Update triage metadata")
    triage_meta.add_argument("digest", type=str)
    triage_meta.add_argument("--state", type=str, choices=[s.value for s in TriageState])
    triage_meta.add_argument("--owner", type=str)
    triage_meta.add_argument("--estimate", type=float, help="Estimate in hours")
    triage_meta.add_argument("--notes", type=str)
    triage_show = triage_sub.add_parser("show", help="Show triage records")
    triage_show.add_argument("digests", nargs="+")

    index_cmd = commands.add_parser("index", help="History index")
    index_sub = index_cmd.add_subparsers(dest="index_command", required=True)
    index_sub.add_parser("export", help="Dump runs and triage as JSON")

    return parser.parse_args(argv)


def emit(data: Any) -> None:
    """Write a JSON document to stdout."""
    print(json.dumps(data, indent=2, default=str))


async def cmd_score(args: argparse.Namespace, store: HistoryStore) -> int:
    pages, journeys = load_evidence(args.evidence)
    issues = score(pages, journeys)

    rows = []
    for issue in issues:
        row = issue.model_dump(mode="json")
        row["digest"] = digest(issue)
        rows.append(row)

    if args.triage:
        states = await store.get_triage_states([row["digest"] for row in rows])
        for row in rows:
            state = states.get(row["digest"])
            row["triage"] = state.value if state else None

    emit(rows)
    return 0


async def cmd_record(args: argparse.Namespace, store: HistoryStore) -> int:
    logger = logging.getLogger(__name__)
    replay = EvidenceReplay.from_file(args.evidence)
    job_store = JobStore()
    runner = create_runner(
        Collaborators(crawler=replay, journeys=replay),
        store=job_store,
        config_path=args.config,
        database_url=store.database_url,
    )
    job = job_store.create_job(args.url, JobOptions())
    try:
        await runner.run_pipeline(job)
    finally:
        if runner.history is not None:
            await runner.history.close()

    if job.status != JobStatus.DONE:
        logger.error(job.summary or f"Job {job.id} did not complete")
        return 1

    emit({"run_id": job.id, "status": job.status.value, "summary": job.summary})
    return 0


async def cmd_runs(args: argparse.Namespace, store: HistoryStore) -> int:
    if args.runs_command == "list":
        runs = await store.list_runs(args.origin)
        emit([run.model_dump(mode="json") for run in runs])
        return 0

    diff = await store.diff_runs(args.base, args.head)
    emit(diff.model_dump(mode="json"))
    if diff.base is None or diff.head is None:
        logging.getLogger(__name__).warning("One or both runs were not found")
        return 1
    return 0


async def cmd_triage(args: argparse.Namespace, store: HistoryStore) -> int:
    if args.triage_command == "set":
        state = None if args.state == "none" else args.state
        ok = await store.set_triage_state(args.digest, state)
        return 0 if ok else 1

    if args.triage_command == "meta":
        update: dict[str, Any] = {}
        if args.state is not None:
            update["state"] = args.state
        if args.owner is not None:
            update["owner"] = args.owner
        if args.estimate is not None:
            update["estimate_hours"] = args.estimate
        if args.notes is not None:
            update["notes"] = args.notes
        ok = await store.set_triage_meta(args.digest, TriageMeta.model_validate(update))
        return 0 if ok else 1

    records = await store.get_triage_meta(args.digests)
    emit({d: meta.model_dump(mode="json", exclude_none=True) for d, meta in records.items()})
    return 0


async def cmd_index(args: argparse.Namespace, store: HistoryStore) -> int:
    emit(await store.export_index())
    return 0


COMMANDS = {
    "score": cmd_score,
    "record": cmd_record,
    "runs": cmd_runs,
    "triage": cmd_triage,
    "index": cmd_index,
}


async def main_async(argv: list[str] | None = None) -> int:
    """Async main function.

    Returns:
        Exit code
    """
    args = parse_args(argv)
    settings = get_settings()

    setup_logging(args.log_level or settings.log_level)
    logger = logging.getLogger(__name__)

    store = HistoryStore(args.database_url or settings.database_url)
    try:
        return await COMMANDS[args.command](args, store)

    except FileNotFoundError as e:
        logger.error(f"File not found: {e.filename or e}")
        return 1

    except (ValidationError, ValueError, ConfigError) as e:
        logger.error(f"Invalid input: {e}")
        return 1

    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130

    finally:
        await store.close()


def main() -> None:
    """Main CLI entrypoint."""
    sys.exit(asyncio.run(main_async()))


if __name__ == "__main__":
    main()
