"""Price quotes for provider bookings.

Pure functions only: the quote shown to a client before booking and the amount
stored on the booking come from the same ``compute_price`` call.
"""
import math
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal, ROUND_HALF_UP
from zoneinfo import ZoneInfo

from app.core.config import settings
from app.core.errors import InvalidDuration
from app.models.enums import BookingKind

CENTS = Decimal("0.01")
MAX_AMOUNT = Decimal("9999999999.99")  # Numeric(12, 2)
FULL_DAY_HOURS_LABEL = "(9 AM–9 PM)"
FULL_DAY_LABEL = f"12 hours {FULL_DAY_HOURS_LABEL}"


@dataclass(frozen=True)
class RateCard:
    hourly_rate: Decimal
    daily_rate: Decimal


@dataclass(frozen=True)
class Timing:
    start_time: datetime | None = None
    end_time: datetime | None = None
    duration_hours: Decimal | None = None
    day: date | None = None


@dataclass(frozen=True)
class PriceQuote:
    amount: Decimal
    duration_label: str
    duration_hours: int
    window_start: datetime
    window_end: datetime


def _plural(n: int, word: str) -> str:
    return f"{n} {word}{'s' if n > 1 else ''}"


def duration_label(hours: int) -> str:
    if hours >= 24:
        days, rest = divmod(hours, 24)
        label = _plural(days, "day")
        return f"{label} {_plural(rest, 'hour')}" if rest else label
    return _plural(hours, "hour")


def billable_hours(span: timedelta) -> int:
    """Whole hours billed for a span; partial hours round up."""
    return math.ceil(span.total_seconds() / 3600)


def elapsed(start: datetime, end: datetime) -> timedelta:
    """Real time between two aware datetimes, whatever zones they carry."""
    return end.astimezone(timezone.utc) - start.astimezone(timezone.utc)


def _check_bound(hours) -> None:
    if hours > settings.MAX_BOOKING_HOURS:
        raise InvalidDuration(f"duration is out of range (at most {settings.MAX_BOOKING_HOURS} hours)")


def full_day_window(day: date, tz_name: str | None = None) -> tuple[datetime, datetime]:
    tz = ZoneInfo(tz_name or settings.BOOKING_TIMEZONE)
    start = datetime.combine(day, time(settings.FULL_DAY_START_HOUR), tzinfo=tz)
    end = datetime.combine(day, time(settings.FULL_DAY_END_HOUR), tzinfo=tz)
    return start, end


def full_day_label(hours: int) -> str:
    return f"{duration_label(hours)} {FULL_DAY_HOURS_LABEL}"


def _hourly_window(timing: Timing) -> tuple[datetime, datetime]:
    start = timing.start_time
    if start is None:
        raise InvalidDuration("start time is required for hourly bookings")
    if start.tzinfo is None:
        raise InvalidDuration("start time must include a timezone offset")
    if (timing.end_time is None) == (timing.duration_hours is None):
        raise InvalidDuration("give either an end time or a duration in hours")
    if timing.end_time is not None:
        if timing.end_time.tzinfo is None:
            raise InvalidDuration("end time must include a timezone offset")
        return start, timing.end_time
    try:
        hours = Decimal(timing.duration_hours)
    except (ArithmeticError, TypeError, ValueError):
        raise InvalidDuration("duration must be a number of hours")
    if not hours.is_finite():
        raise InvalidDuration("duration must be a number of hours")
    _check_bound(hours)
    # Added in UTC so a DST change inside the window does not shift the end
    try:
        return start, start.astimezone(timezone.utc) + timedelta(seconds=float(hours * 3600))
    except OverflowError:
        raise InvalidDuration("duration is out of range")


def compute_price(rate_card: RateCard, booking_kind: BookingKind | str, timing: Timing) -> PriceQuote:
    try:
        kind = BookingKind(booking_kind)
    except ValueError:
        raise InvalidDuration(f"unknown booking kind: {booking_kind}")

    if kind is BookingKind.FULL_DAY:
        if timing.day is None:
            raise InvalidDuration("date is required for full-day bookings")
        if rate_card.daily_rate is None or rate_card.daily_rate <= 0:
            raise InvalidDuration("provider has no daily rate")
        start, end = full_day_window(timing.day)
        hours = billable_hours(elapsed(start, end))
        return PriceQuote(
            amount=Decimal(rate_card.daily_rate).quantize(CENTS, rounding=ROUND_HALF_UP),
            duration_label=full_day_label(hours),
            duration_hours=hours,
            window_start=start,
            window_end=end,
        )

    start, end = _hourly_window(timing)
    hours = billable_hours(elapsed(start, end))
    if hours <= 0:
        raise InvalidDuration("end time must be after start time")
    _check_bound(hours)
    if rate_card.hourly_rate is None or rate_card.hourly_rate <= 0:
        raise InvalidDuration("provider has no hourly rate")
    amount = (Decimal(hours) * Decimal(rate_card.hourly_rate)).quantize(CENTS, rounding=ROUND_HALF_UP)
    if amount > MAX_AMOUNT:
        raise InvalidDuration("price is out of range")
    return PriceQuote(
        amount=amount,
        duration_label=duration_label(hours),
        duration_hours=hours,
        window_start=start,
        window_end=end,
    )


def describe_booking_kind(window_start: datetime, window_end: datetime) -> tuple[str, str]:
    """Display type and duration for a stored window ("Full Day" only for exactly 09:00-21:00 local)."""
    tz = ZoneInfo(settings.BOOKING_TIMEZONE)
    local_start = window_start.astimezone(tz)
    local_end = window_end.astimezone(tz)
    hours = billable_hours(elapsed(window_start, window_end))
    if (local_start, local_end) == full_day_window(local_start.date()):
        return "Full Day", full_day_label(hours)
    return "Hourly", duration_label(hours)
