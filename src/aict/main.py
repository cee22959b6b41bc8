"""Main CLI entry point for AI Code Tracker."""

import argparse
import sys
from typing import Any, Dict, List, Optional

from .errors import AictError, AuthorshipNotFoundError
from .logging_utils import configure_logging
from .serialize import DeterministicSerializer
from .service import SYNC_FETCH, SYNC_PUSH, TrackerService


def create_parser() -> argparse.ArgumentParser:
    """Create command line argument parser."""
    parser = argparse.ArgumentParser(
        prog="aict",
        description="Track human and AI authorship of source lines",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  aict init
  aict checkpoint --author "Claude Code" --model claude-sonnet-4
  aict commit
  aict report --since 7d --format table
  aict report --range origin/main..HEAD
  aict reset --range HEAD~5..HEAD
        """,
    )
    parser.add_argument(
        "--repo",
        help="Repository path (default: current directory)",
    )
    parser.add_argument(
        "--log-level",
        help="Logging level (default: LOG_LEVEL or INFO)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("init", help="Write the default configuration")

    checkpoint = subparsers.add_parser("checkpoint", help="Record a checkpoint of the working tree")
    checkpoint.add_argument("--author", help="Author identity (default: configured default author)")
    checkpoint.add_argument("--model", help="AI model name stored in checkpoint metadata")
    checkpoint.add_argument("--message", help="Free-form note stored in checkpoint metadata")

    commit = subparsers.add_parser("commit", help="Store the authorship log of a commit")
    commit.add_argument("--commit", default="HEAD", help="Commit to finalize (default: HEAD)")
    commit.add_argument(
        "--from-checkpoints",
        action="store_true",
        help="Build the log from checkpoint changes only, without the commit diff",
    )

    report = subparsers.add_parser("report", help="Aggregate authorship over a commit range")
    target = report.add_mutually_exclusive_group(required=True)
    target.add_argument("--range", dest="range_spec", help="Revision range, e.g. main..HEAD")
    target.add_argument("--since", help="Date or shorthand such as 7d, 2w, 1m, 1y")
    report.add_argument(
        "--format",
        choices=["json", "table"],
        default="json",
        help="Output format (default: json)",
    )

    show = subparsers.add_parser("show", help="Print the authorship log of a commit")
    show.add_argument("commit", help="Commit to show")

    sync = subparsers.add_parser("sync", help="Push or fetch authorship notes")
    sync.add_argument("direction", choices=[SYNC_PUSH, SYNC_FETCH])
    sync.add_argument("--remote", default="origin", help="Remote name (default: origin)")

    reset = subparsers.add_parser("reset", help="Clear pending checkpoints and stored logs")
    reset.add_argument(
        "--range",
        dest="range_spec",
        help="Also remove the authorship logs of every commit in this range",
    )

    return parser


def run_command(service: TrackerService, args: argparse.Namespace) -> Any:
    """Run one subcommand and return the payload for the success envelope."""
    serializer = DeterministicSerializer()

    if args.command == "init":
        config = service.init()
        return {"config_path": str(service.storage.config_path), "config": config.to_dict()}

    if args.command == "checkpoint":
        checkpoint = service.record_checkpoint(
            author=args.author, model=args.model, message=args.message
        )
        data = checkpoint.to_dict()
        data.pop("snapshot", None)
        return data

    if args.command == "commit":
        log = service.finalize_commit(args.commit, from_checkpoints=args.from_checkpoints)
        return serializer.log_to_dict(log)

    if args.command == "report":
        report = service.report(range_spec=args.range_spec, since=args.since)
        if args.format == "table":
            return serializer.render_report_table(report)
        return serializer.serialize_report(report)

    if args.command == "show":
        log = service.show(args.commit)
        if log is None:
            raise AuthorshipNotFoundError(args.commit)
        return serializer.log_to_dict(log)

    if args.command == "sync":
        service.sync(args.direction, args.remote)
        return {"direction": args.direction, "remote": args.remote, "ref": service.notes.ref}

    if args.command == "reset":
        return service.reset(args.range_spec)

    raise ValueError(f"unknown command {args.command!r}")


def output_result(result: Dict[str, Any]) -> None:
    """Print an envelope as JSON."""
    print(DeterministicSerializer().to_json_string(result))


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)
    serializer = DeterministicSerializer()

    try:
        service = TrackerService(repo_path=args.repo)
        payload = run_command(service, args)

        if isinstance(payload, str):
            print(payload)
        else:
            output_result(serializer.create_success_envelope(payload))
        return 0

    except AictError as e:
        output_result(serializer.create_error_envelope(e.code, e.message, e.details))
        return 1

    except Exception as e:
        output_result(
            serializer.create_error_envelope(
                "INTERNAL_ERROR",
                f"Internal error: {str(e)}",
                {"type": type(e).__name__},
            )
        )
        return 1


if __name__ == "__main__":
    sys.exit(main())
