"""
poll_scheduler.py

Version: 1.0.00
Generated: 2026-10-17 09:30:00

Deferred poll posting.

PollScheduler keeps its own list of pending polls, each backed by an asyncio
timer handle. When a timer fires the poll is posted with the same
PollBot.create_poll used by the immediate path. Errors from a fired poll are
logged and recorded on its entry, never raised, since nobody is waiting on it.

Nothing here retries. Cancelling drops timers that have not fired yet; a poll
that is already being posted runs to completion.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List, Optional

from poll_bot import InvalidSchedule, PollBot
from polls import PollDefinition

logger = logging.getLogger("poll_scheduler")

SCHEDULED = "scheduled"
FIRED = "fired"
FAILED = "failed"
CANCELLED = "cancelled"


@dataclass
class ScheduledPoll:
    poll: PollDefinition
    fire_time: datetime
    handle: Optional[asyncio.TimerHandle] = None
    state: str = SCHEDULED
    tweet_id: Optional[str] = None
    error: Optional[BaseException] = None


class PollScheduler:
    def __init__(
        self,
        bot: PollBot,
        loop: Optional[asyncio.AbstractEventLoop] = None,
        clock: Callable = datetime.now,
    ):
        self.bot = bot
        self.loop = loop if loop is not None else asyncio.new_event_loop()
        self.clock = clock
        self._entries: List[ScheduledPoll] = []

    @property
    def pending(self) -> List[ScheduledPoll]:
        return list(self._entries)

    def schedule(self, poll: PollDefinition, fire_time: datetime) -> ScheduledPoll:
        """
        Register poll to be posted at fire_time.

        fire_time must be a datetime strictly in the future; naive datetimes
        are local time. Credentials are checked before anything is registered.
        """
        try:
            if not isinstance(fire_time, datetime):
                raise InvalidSchedule("fire_time must be a valid datetime")
            now = self.clock(fire_time.tzinfo)
            if fire_time <= now:
                raise InvalidSchedule("fire_time must be in the future")

            self.bot.verify_credentials()
        except Exception as e:
            logger.error("Error scheduling poll '%s' at %s: %s", poll.title, fire_time, e)
            raise

        delay = (fire_time - now).total_seconds()
        entry = ScheduledPoll(poll=poll, fire_time=fire_time)
        entry.handle = self.loop.call_later(delay, self._fire, entry)
        self._entries.append(entry)
        logger.info("Scheduling poll '%s' for %s", poll.title, fire_time.isoformat())
        return entry

    def _fire(self, entry: ScheduledPoll) -> None:
        if entry in self._entries:
            self._entries.remove(entry)
        entry.handle = None
        try:
            tweet = self.bot.create_poll(entry.poll)
        except Exception as e:
            entry.state = FAILED
            entry.error = e
            logger.error("Error creating scheduled poll '%s': %s", entry.poll.title, e)
            return
        entry.state = FIRED
        entry.tweet_id = tweet["id"]
        logger.info("Scheduled poll posted: %s", entry.tweet_id)

    def cancel_all(self) -> int:
        """Cancel every pending poll. Safe to call repeatedly."""
        cancelled = 0
        for entry in self._entries:
            if entry.handle is not None:
                entry.handle.cancel()
                entry.handle = None
            entry.state = CANCELLED
            cancelled += 1
        self._entries = []
        logger.info("All scheduled polls cancelled (%d)", cancelled)
        return cancelled

    async def wait_idle(self, interval: float = 1.0) -> None:
        """Return once every scheduled poll has fired or been cancelled."""
        while self._entries:
            await asyncio.sleep(interval)
