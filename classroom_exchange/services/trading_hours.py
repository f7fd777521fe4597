"""
Trading Hours
Decides whether trading is allowed at a given moment.

The exchange runs a fixed set of short daily windows in its local
timezone. A window is open for ``start <= t < end``.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time, timedelta, timezone
from typing import Callable, Iterable, Optional, Sequence
from zoneinfo import ZoneInfo

from classroom_exchange.core.config import settings


@dataclass(frozen=True)
class TradingWindow:
    start: time
    end: time

    def contains(self, moment: time) -> bool:
        return self.start <= moment < self.end

    def label(self) -> str:
        return f"{self.start:%H:%M}~{self.end:%H:%M}"

    @classmethod
    def parse(cls, spec: str) -> "TradingWindow":
        """Parse ``"HH:MM-HH:MM"``."""
        start_s, end_s = (part.strip() for part in spec.split("-", 1))
        start = time.fromisoformat(start_s)
        end = time.fromisoformat(end_s)
        if end <= start:
            raise ValueError(f"Trading window '{spec}' must end after it starts")
        return cls(start=start, end=end)


@dataclass
class TradingStatus:
    allowed: bool
    message: str
    is_beta: bool
    current_time: datetime
    closes_at: Optional[datetime] = None
    next_open_at: Optional[datetime] = None


class TradingHours:
    """Trading-window evaluator bound to a schedule and a clock."""

    def __init__(
        self,
        windows: Iterable[TradingWindow],
        tz: str = "Asia/Seoul",
        always_open: bool = False,
        beta_ends_at: Optional[datetime] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.windows: Sequence[TradingWindow] = tuple(sorted(windows, key=lambda w: w.start))
        self.tz = ZoneInfo(tz)
        self.always_open = always_open
        if beta_ends_at is not None and beta_ends_at.tzinfo is None:
            beta_ends_at = beta_ends_at.replace(tzinfo=self.tz)
        self.beta_ends_at = beta_ends_at
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def now(self) -> datetime:
        """Current time in the exchange timezone."""
        return self._localize(self._clock())

    def _localize(self, moment: datetime) -> datetime:
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=timezone.utc)
        return moment.astimezone(self.tz)

    def is_beta(self, now: Optional[datetime] = None) -> bool:
        if self.beta_ends_at is None:
            return False
        local = self._localize(now) if now else self.now()
        return local < self.beta_ends_at

    def current_window(self, now: Optional[datetime] = None) -> Optional[TradingWindow]:
        local = self._localize(now) if now else self.now()
        moment = local.time().replace(tzinfo=None)
        for window in self.windows:
            if window.contains(moment):
                return window
        return None

    def next_window_start(self, now: Optional[datetime] = None) -> Optional[datetime]:
        """Start of the next window strictly after ``now`` (may be tomorrow)."""
        if not self.windows:
            return None
        local = self._localize(now) if now else self.now()
        moment = local.time().replace(tzinfo=None)
        for window in self.windows:
            if window.start > moment:
                return datetime.combine(local.date(), window.start, tzinfo=self.tz)
        tomorrow = local.date() + timedelta(days=1)
        return datetime.combine(tomorrow, self.windows[0].start, tzinfo=self.tz)

    def status(self, now: Optional[datetime] = None) -> TradingStatus:
        local = self._localize(now) if now else self.now()

        if self.always_open:
            return TradingStatus(allowed=True, message="✅ 24시간 거래 가능!", is_beta=False, current_time=local)

        if self.is_beta(local):
            return TradingStatus(
                allowed=True,
                message="🧪 베타 테스트 기간: 24시간 거래 가능!",
                is_beta=True,
                current_time=local,
            )

        window = self.current_window(local)
        if window is not None:
            return TradingStatus(
                allowed=True,
                message=f"✅ 거래 가능 시간입니다. ({window.label()})",
                is_beta=False,
                current_time=local,
                closes_at=datetime.combine(local.date(), window.end, tzinfo=self.tz),
            )

        next_open = self.next_window_start(local)
        message = "⏰ 지금은 거래 가능 시간이 아닙니다."
        if next_open is not None:
            message += f" 다음 거래 시작: {next_open:%H:%M}"
        return TradingStatus(
            allowed=False,
            message=message,
            is_beta=False,
            current_time=local,
            next_open_at=next_open,
        )

    def is_open(self, now: Optional[datetime] = None) -> bool:
        return self.status(now).allowed

    def time_window_key(self, now: Optional[datetime] = None) -> str:
        """Hour bucket used to group trades, e.g. ``"2025-11-20 09:00"``."""
        local = self._localize(now) if now else self.now()
        return local.strftime("%Y-%m-%d %H:00")


def build_trading_hours() -> TradingHours:
    return TradingHours(
        windows=[TradingWindow.parse(spec) for spec in settings.trading_windows],
        tz=settings.timezone,
        always_open=settings.trading_always_open,
        beta_ends_at=settings.beta_ends_at,
    )


trading_hours = build_trading_hours()


def get_trading_hours() -> TradingHours:
    """FastAPI dependency; overridden in tests."""
    return trading_hours
