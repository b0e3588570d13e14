"""Rate limiting middleware for tap spam protection."""
from __future__ import annotations

import time
from collections import defaultdict, deque
from typing import Awaitable, Callable, Deque, Dict, Optional

from aiogram import BaseMiddleware
from aiogram.types import Message

from garden_tap.config import SETTINGS
from garden_tap.constants import RU

HandlerType = Callable[[Message, Dict], Awaitable[object]]


class RateLimiter:
    """Simple per-user rate limiter using in-memory deque."""

    def __init__(self, max_events: int = 100) -> None:
        self._events: Dict[int, Deque[float]] = defaultdict(lambda: deque(maxlen=max_events))

    def allow(self, user_id: int, limit_per_sec: int, now: Optional[float] = None) -> bool:
        timestamp = time.monotonic() if now is None else now
        events = self._events[user_id]
        while events and timestamp - events[0] > 1.0:
            events.popleft()
        if len(events) >= limit_per_sec:
            return False
        events.append(timestamp)
        return True


class RateLimitMiddleware(BaseMiddleware):
    """Drop taps that exceed the per-second limit."""

    def __init__(self, limiter: Optional[RateLimiter] = None, limit_per_sec: Optional[int] = None) -> None:
        super().__init__()
        self.limiter = limiter or RateLimiter()
        self.limit_per_sec = limit_per_sec or SETTINGS.TAP_RATE_BASE

    async def __call__(self, handler: HandlerType, event: Message, data: Dict) -> Optional[object]:
        if isinstance(event, Message) and (event.text or "") == RU.BTN_TAP and event.from_user:
            if not self.limiter.allow(event.from_user.id, self.limit_per_sec):
                await event.answer(RU.TOO_FAST)
                return None
        return await handler(event, data)
