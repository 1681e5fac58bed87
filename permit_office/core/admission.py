"""
Request admission queue used while the process warms up.

While the queue is initializing, requests outside the exempt paths wait in a
bounded FIFO. A ticker releases one waiting request per tick; a request that
is still waiting after item_timeout is dropped and answered with a timeout.
Once mark_ready() is called new requests pass straight through, while any
requests already queued keep draining in order.
"""

import asyncio
import logging
import time
from collections import deque
from dataclasses import dataclass, field
from itertools import count
from typing import Deque, Dict, Iterable, Optional

logger = logging.getLogger(__name__)

STATE_INITIALIZING = "initializing"
STATE_READY = "ready"

DEFAULT_EXEMPT_PATHS = ("/api/health", "/api/user")
DEFAULT_EXEMPT_PREFIXES = ("/api/auth",)

_ticket_ids = count(1)


@dataclass
class Ticket:
    """One queued request. released resolves True when the ticker lets it through."""

    id: int
    enqueued_at: float
    released: asyncio.Future = field(repr=False)


class AdmissionQueue:
    def __init__(
        self,
        capacity: int = 100,
        item_timeout: float = 30.0,
        tick_interval: float = 0.05,
        exempt_paths: Iterable[str] = DEFAULT_EXEMPT_PATHS,
        exempt_prefixes: Iterable[str] = DEFAULT_EXEMPT_PREFIXES,
    ) -> None:
        self.capacity = capacity
        self.item_timeout = item_timeout
        self.tick_interval = tick_interval
        self.exempt_paths = frozenset(exempt_paths)
        self.exempt_prefixes = tuple(exempt_prefixes)
        self._queue: Deque[Ticket] = deque()
        self._state = STATE_INITIALIZING

    @property
    def state(self) -> str:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state == STATE_READY

    def mark_ready(self) -> None:
        if self._state != STATE_READY:
            self._state = STATE_READY
            logger.info("Admission queue ready (%d request(s) still queued)", len(self._queue))

    def __len__(self) -> int:
        return len(self._queue)

    def is_exempt(self, path: str) -> bool:
        return path in self.exempt_paths or path.startswith(self.exempt_prefixes)

    def enqueue(self) -> Optional[Ticket]:
        """Append a ticket, or return None when the queue is full."""
        if len(self._queue) >= self.capacity:
            logger.warning("Admission queue full (%d), rejecting request", self.capacity)
            return None
        loop = asyncio.get_running_loop()
        ticket = Ticket(id=next(_ticket_ids), enqueued_at=time.monotonic(), released=loop.create_future())
        self._queue.append(ticket)
        logger.debug("Queued request %d, queue size: %d", ticket.id, len(self._queue))
        return ticket

    async def wait(self, ticket: Ticket) -> bool:
        """Wait until the ticket is released. False means it timed out and was dropped."""
        try:
            await asyncio.wait_for(asyncio.shield(ticket.released), timeout=self.item_timeout)
            return True
        except asyncio.TimeoutError:
            self._discard(ticket)
            if ticket.released.done() and not ticket.released.cancelled():
                # Released in the same instant the timeout fired
                return True
            ticket.released.cancel()
            logger.warning("Queued request %d timed out after %.1fs", ticket.id, self.item_timeout)
            return False
        except asyncio.CancelledError:
            # Client went away; free the slot
            self._discard(ticket)
            ticket.released.cancel()
            raise

    def release_next(self) -> Optional[Ticket]:
        """Release the oldest waiting ticket, skipping any that already gave up."""
        while self._queue:
            ticket = self._queue.popleft()
            if ticket.released.done():
                continue
            ticket.released.set_result(True)
            logger.debug("Released request %d, queue size: %d", ticket.id, len(self._queue))
            return ticket
        return None

    async def run(self) -> None:
        """Release one ticket per tick until cancelled."""
        while True:
            await asyncio.sleep(self.tick_interval)
            self.release_next()

    def stats(self) -> Dict[str, object]:
        oldest = 0.0
        if self._queue:
            oldest = time.monotonic() - self._queue[0].enqueued_at
        return {
            "state": self._state,
            "queue_size": len(self._queue),
            "max_queue_size": self.capacity,
            "oldest_request_seconds": round(oldest, 3),
        }

    def _discard(self, ticket: Ticket) -> None:
        try:
            self._queue.remove(ticket)
        except ValueError:
            pass
