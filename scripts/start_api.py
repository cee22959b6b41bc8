#!/usr/bin/env python3
"""Startup script for the AI Code Tracker API server."""

import argparse
import os

import uvicorn


def main():
    """Main entry point for API server."""
    parser = argparse.ArgumentParser(
        description="Start the AI Code Tracker API server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/start_api.py                          # Serve the current repository
  python scripts/start_api.py --repo /path/to/repo     # Serve another repository
  python scripts/start_api.py --host 0.0.0.0 --reload  # Development server
        """,
    )

    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Host to bind to (default: 127.0.0.1)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port to bind to (default: 8000)",
    )
    parser.add_argument(
        "--repo",
        help="Repository to report on (default: AICT_REPO_PATH or current directory)",
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable auto-reload for development",
    )
    parser.add_argument(
        "--log-level",
        default="info",
        choices=["critical", "error", "warning", "info", "debug", "trace"],
        help="Log level (default: info)",
    )

    args = parser.parse_args()

    if args.repo:
        os.environ["AICT_REPO_PATH"] = os.path.abspath(args.repo)

    print("Starting AI Code Tracker API server...")
    print(f"   Host: {args.host}")
    print(f"   Port: {args.port}")
    print(f"   Repository: {os.getenv('AICT_REPO_PATH') or os.getcwd()}")
    print(f"   API Docs: http://{args.host}:{args.port}/docs")
    print()

    config = {
        "app": "aict.api.app:app",
        "host": args.host,
        "port": args.port,
        "log_level": args.log_level,
    }

    if args.reload:
        config["reload"] = True
        config["reload_dirs"] = ["src"]

    uvicorn.run(**config)


if __name__ == "__main__":
    main()
