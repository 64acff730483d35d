"""
post_poll.py

Version: 1.0.00
Generated: 2026-10-17 09:30:00

Post one of the configured polls (polls.py) to X/Twitter.

Features:
- Picks a poll by index (defaults to the first one)
- Verifies credentials, uploads the poll image if it has one, then posts
  the poll (as a reply to the image post when there is an image)
- Retries a failed post up to 3 times, 1 minute apart
- --at schedules the poll for later and waits for it to go out
- --test previews the poll without contacting X

Usage:
    python post_poll.py [INDEX] [--at YYYY-MM-DDTHH:MM[:SS][+HH:MM]] [--test]

    INDEX: Optional poll index into POLLS (defaults to 0)
    --at: Post at this time instead of now (naive times are local time)
    --test: Print the poll that would be posted and exit

Environment Variables Required:
    X_API_KEY
    X_API_SECRET
    X_ACCESS_TOKEN
    X_ACCESS_TOKEN_SECRET

Optional:
    POLL_DEFAULT_DURATION_HOURS (default 24)
    LOG_LEVEL (default INFO)
    LOG_DIR (default ./logs)

Exit code is 0 when the poll was posted (or on SIGINT/SIGTERM), 1 otherwise.
"""

from __future__ import annotations

import logging
import os
import signal
import sys
import time
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Tuple

from dotenv import load_dotenv

from poll_bot import (
    DEFAULT_DURATION_HOURS,
    Credentials,
    InvalidSchedule,
    PollBot,
    PollBotError,
    hours_to_minutes,
)
from poll_scheduler import FIRED, PollScheduler
from polls import PollDefinition, get_default_poll, get_poll_by_index

# -----------------------
# Configuration
# -----------------------

PROJECT_ROOT = Path(__file__).resolve().parent

RETRY_ATTEMPTS = 3
RETRY_DELAY_SECONDS = 60

LOG_FORMAT = "%(asctime)s  %(levelname)s  %(message)s"

logger = logging.getLogger("post_poll")

# -----------------------
# Environment / Secrets
# -----------------------

load_dotenv(dotenv_path=PROJECT_ROOT / ".env")


def setup_logging() -> None:
    """Console plus logs/combined.log (everything) and logs/error.log (errors)."""
    level_name = os.getenv("LOG_LEVEL", "INFO").upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        level = logging.INFO

    log_dir = Path(os.getenv("LOG_DIR") or PROJECT_ROOT / "logs")
    log_dir.mkdir(parents=True, exist_ok=True)

    error_handler = logging.FileHandler(log_dir / "error.log", encoding="utf-8", delay=True)
    error_handler.setLevel(logging.ERROR)

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[
            logging.StreamHandler(),
            logging.FileHandler(log_dir / "combined.log", encoding="utf-8", delay=True),
            error_handler,
        ],
    )


def load_default_duration() -> float:
    raw = os.getenv("POLL_DEFAULT_DURATION_HOURS")
    if not raw:
        return DEFAULT_DURATION_HOURS
    try:
        hours = float(raw)
    except ValueError:
        hours = 0
    if hours <= 0:
        logger.warning(
            "Invalid POLL_DEFAULT_DURATION_HOURS %r; using %s",
            raw, DEFAULT_DURATION_HOURS,
        )
        return DEFAULT_DURATION_HOURS
    return hours


def install_signal_handlers() -> None:
    def handle(signum, frame):
        logger.info("Received %s signal", signal.Signals(signum).name)
        sys.exit(0)

    signal.signal(signal.SIGTERM, handle)
    signal.signal(signal.SIGINT, handle)


# -----------------------
# Utility functions
# -----------------------

def parse_fire_time(arg: str) -> datetime:
    try:
        return datetime.fromisoformat(arg)
    except ValueError:
        raise InvalidSchedule(f"Invalid --at time: {arg!r} (expected ISO format)")


def parse_args(argv: Optional[List[str]] = None) -> Tuple[Optional[str], Optional[datetime], bool]:
    """Return (index_arg, fire_time, test_mode)."""
    args = list(sys.argv[1:] if argv is None else argv)
    test_mode = False
    fire_time = None

    if "--test" in args:
        test_mode = True
        args.remove("--test")

    if "--at" in args:
        pos = args.index("--at")
        if pos + 1 >= len(args):
            raise InvalidSchedule("--at requires a time")
        fire_time = parse_fire_time(args[pos + 1])
        del args[pos:pos + 2]

    index_arg = args[0] if args else None
    return index_arg, fire_time, test_mode


def resolve_poll(index_arg: Optional[str]) -> PollDefinition:
    if index_arg is None:
        return get_default_poll()
    try:
        poll = get_poll_by_index(int(index_arg))
    except ValueError:
        poll = None
    if poll is None:
        raise LookupError(f"Poll configuration not found for index: {index_arg}")
    return poll


def create_poll_with_retry(
    bot: PollBot,
    poll: PollDefinition,
    retries: int = RETRY_ATTEMPTS,
    delay: float = RETRY_DELAY_SECONDS,
    sleep=time.sleep,
) -> dict:
    """
    Call bot.create_poll up to `retries` times, waiting `delay` seconds between
    attempts. Every error is retried the same way; the last one is re-raised.
    """
    if retries < 1:
        raise ValueError("retries must be at least 1")
    for attempt in range(1, retries + 1):
        try:
            return bot.create_poll(poll)
        except Exception as e:
            logger.error("Poll creation attempt %d failed: %s", attempt, e)
            if attempt == retries:
                raise
            sleep(delay)


def print_preview(poll: PollDefinition, bot_duration_hours: float) -> None:
    hours = poll.duration_hours or bot_duration_hours
    print("\n" + "=" * 70)
    print("=== POLL PREVIEW (TEST MODE) ===")
    print("=" * 70)
    print(f"Title ({len(poll.title)} chars): {poll.title}")
    for i, option in enumerate(poll.options, 1):
        print(f"  {i}. {option}")
    print(f"Duration: {hours} hours ({hours_to_minutes(hours)} minutes)")
    if poll.image_path:
        status = "✓" if Path(poll.image_path).exists() else "✗ MISSING"
        print(f"Image: {poll.image_path} {status}")
    else:
        print("Image: none")
    print("\n⚠️  Post: SKIPPED (test mode)")
    print("=" * 70 + "\n")


# -----------------------
# Orchestration
# -----------------------

def run_scheduled(bot: PollBot, poll: PollDefinition, fire_time: datetime) -> int:
    scheduler = PollScheduler(bot)
    try:
        entry = scheduler.schedule(poll, fire_time)
        scheduler.loop.run_until_complete(scheduler.wait_idle())
    except Exception as e:
        logger.error("Failed to schedule poll: %s", e)
        return 1
    finally:
        scheduler.cancel_all()
        scheduler.loop.close()
    return 0 if entry.state == FIRED else 1


def main(argv: Optional[List[str]] = None) -> int:
    setup_logging()
    install_signal_handlers()

    try:
        index_arg, fire_time, test_mode = parse_args(argv)
        poll = resolve_poll(index_arg)
    except (InvalidSchedule, LookupError) as e:
        logger.error("%s", e)
        return 1

    default_hours = load_default_duration()

    if test_mode:
        logger.info("TEST MODE: previewing poll and skipping post.")
        print_preview(poll, default_hours)
        return 0

    try:
        bot = PollBot(Credentials.from_env(), default_duration_hours=default_hours)
    except PollBotError as e:
        logger.error("%s", e)
        return 1

    if fire_time is not None:
        return run_scheduled(bot, poll, fire_time)

    try:
        tweet = create_poll_with_retry(
            bot, poll, retries=RETRY_ATTEMPTS, delay=RETRY_DELAY_SECONDS
        )
    except Exception as e:
        logger.error("Failed to create poll: %s", e)
        return 1

    logger.info("Poll created successfully: %s", tweet["id"])
    return 0


if __name__ == "__main__":
    sys.exit(main())
