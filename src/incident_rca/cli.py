from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from typing import Any

from incident_rca.core.errors import InvalidRequestError
from incident_rca.core.repositories import RepositoryFederation, RepositorySettings
from incident_rca.tools.analyze import analyze_incident_impl

logger = logging.getLogger(__name__)


async def _run(args: argparse.Namespace) -> dict[str, Any]:
    federation = RepositoryFederation.from_settings(RepositorySettings.from_env())
    try:
        for repository_id in args.connect:
            if not await federation.connect(repository_id):
                logger.warning("Continuing without %s", repository_id)
        return await analyze_incident_impl(
            narrative=args.narrative,
            log_lines=args.lines or None,
            log_paths=args.logs or None,
            include_fixes=not args.no_fixes,
            include_tests=not args.no_tests,
            include_code_search=not args.no_code_search,
            federation=federation,
        )
    finally:
        await federation.close()


def main() -> None:
    p = argparse.ArgumentParser(
        prog="incident-rca",
        description="Root-cause analysis of an incident from a narrative and raw logs.",
    )
    p.add_argument("narrative", help="What was observed (e.g., 'users getting 500 errors')")
    p.add_argument("--log", dest="logs", action="append", default=[], help="Log file (plain or .gz); repeatable")
    p.add_argument("--line", dest="lines", action="append", default=[], help="Raw log line; repeatable")
    p.add_argument(
        "--connect",
        action="append",
        default=[],
        choices=["github", "gitlab", "code-index"],
        help="Connect a repository backend before analysis; repeatable",
    )
    p.add_argument("--no-fixes", action="store_true", help="Skip fix generation")
    p.add_argument("--no-tests", action="store_true", help="Skip test generation")
    p.add_argument("--no-code-search", action="store_true", help="Skip repository code search")

    args = p.parse_args()

    level_name = os.getenv("INCIDENT_RCA_LOG_LEVEL", "WARNING").upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        out = asyncio.run(_run(args))
    except FileNotFoundError as e:
        print(str(e), file=sys.stderr)
        raise SystemExit(2)
    except (InvalidRequestError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        raise SystemExit(2)

    print(json.dumps(out, indent=2))


if __name__ == "__main__":
    main()
