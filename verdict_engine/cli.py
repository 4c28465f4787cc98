"""CLI entrypoint — run the daily debate once against the configured database.

Usage::

    python -m verdict_engine.cli
    python -m verdict_engine.cli --date 2026-10-16 --force

Prints the pipeline payload as JSON on stdout. Exit code 0 for "created" and
"exists", 1 when the run fails (error envelope on stderr).
"""

import argparse
import asyncio
import json
import logging
import sys
from datetime import date

from verdict_engine.config import get_settings
from verdict_engine.core.errors import VerdictEngineError
from verdict_engine.infrastructure.agent_invoker import AgentInvoker
from verdict_engine.infrastructure.database import init_db
from verdict_engine.infrastructure.observability import setup_logging
from verdict_engine.services.daily_debate import run_daily_debate

logger = logging.getLogger(__name__)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Run the three-analyst debate and store the day's verdict.",
    )
    parser.add_argument(
        "--date",
        type=date.fromisoformat,
        default=None,
        help="Verdict date as YYYY-MM-DD (default: today in VERDICT_TIMEZONE).",
    )
    parser.add_argument(
        "--force",
        action="store_true",
        help="Delete an existing verdict for the date and regenerate it.",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (default: LOG_LEVEL setting).",
    )
    return parser.parse_args(argv)


async def _run(args: argparse.Namespace) -> dict:
    settings = get_settings()
    invoker = AgentInvoker(
        settings.persona_endpoints(),
        max_tokens=settings.agent_max_tokens,
        temperature=settings.agent_temperature,
        timeout_seconds=settings.anthropic_timeout_seconds,
    )
    manager = init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    try:
        async with manager.session() as db:
            return await run_daily_debate(
                db, invoker,
                verdict_date=args.date,
                force=args.force,
                settings=settings,
            )
    finally:
        await manager.dispose()


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    settings = get_settings()
    setup_logging(args.log_level or settings.log_level, settings.log_format)

    try:
        result = asyncio.run(_run(args))
    except VerdictEngineError as e:
        logger.error("Debate run failed: %s", e.message, extra={"error_code": e.code})
        print(json.dumps(e.to_response(), ensure_ascii=False), file=sys.stderr)
        return 1

    print(json.dumps(result, ensure_ascii=False, indent=2, default=str))
    return 0


if __name__ == "__main__":
    sys.exit(main())
