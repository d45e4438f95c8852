from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from zoneinfo import ZoneInfo

import pytest

from app.core.errors import InvalidDuration
from app.models.enums import BookingKind
from app.services.pricing_service import (
    FULL_DAY_LABEL,
    RateCard,
    Timing,
    billable_hours,
    compute_price,
    describe_booking_kind,
    duration_label,
    full_day_window,
)

CARD = RateCard(hourly_rate=Decimal("500"), daily_rate=Decimal("2000"))
START = datetime(2025, 6, 1, 10, 0, tzinfo=timezone.utc)
IST = ZoneInfo("Asia/Kolkata")


def hourly(hours) -> Timing:
    return Timing(start_time=START, duration_hours=Decimal(str(hours)))


def test_hourly_amount_is_ceil_hours_times_rate():
    q = compute_price(CARD, BookingKind.HOURLY, hourly("2.25"))
    assert q.duration_hours == 3
    assert q.amount == Decimal("1500.00")
    assert q.duration_label == "3 hours"


def test_reserved_window_is_the_requested_span():
    q = compute_price(CARD, "hourly", hourly("1.5"))
    assert q.window_start == START
    assert q.window_end == START + timedelta(minutes=90)
    assert q.amount == Decimal("1000.00")


def test_end_time_and_duration_give_the_same_quote():
    by_duration = compute_price(CARD, "hourly", hourly(4))
    by_end = compute_price(CARD, "hourly", Timing(start_time=START, end_time=START + timedelta(hours=4)))
    assert by_duration == by_end


def test_hourly_price_is_monotonic_in_duration():
    amounts = [compute_price(CARD, "hourly", hourly(Decimal(q) / 4)).amount for q in range(1, 100)]
    assert amounts == sorted(amounts)


def test_amount_is_quantized_to_cents():
    card = RateCard(hourly_rate=Decimal("333.333"), daily_rate=Decimal("1000"))
    assert compute_price(card, "hourly", hourly(1)).amount == Decimal("333.33")


def test_compute_price_is_deterministic():
    t = hourly("3.5")
    assert compute_price(CARD, "hourly", t) == compute_price(CARD, "hourly", t)


@pytest.mark.parametrize("day", [date(2025, 6, 1), date(2025, 12, 31), date(2026, 2, 28)])
def test_full_day_price_is_the_daily_rate_for_any_date(day):
    q = compute_price(CARD, BookingKind.FULL_DAY, Timing(day=day))
    assert q.amount == Decimal("2000.00")
    assert q.duration_hours == 12
    assert q.duration_label == FULL_DAY_LABEL


def test_full_day_window_is_local_nine_to_nine():
    start, end = full_day_window(date(2025, 6, 1), "Asia/Kolkata")
    assert start == datetime(2025, 6, 1, 9, 0, tzinfo=IST)
    assert end == datetime(2025, 6, 1, 21, 0, tzinfo=IST)
    # 09:00 IST is 03:30 UTC
    assert start.astimezone(timezone.utc) == datetime(2025, 6, 1, 3, 30, tzinfo=timezone.utc)


@pytest.mark.parametrize("timing, message", [
    (Timing(start_time=START, duration_hours=Decimal("0")), "after start"),
    (Timing(start_time=START, duration_hours=Decimal("-2")), "after start"),
    (Timing(start_time=START, end_time=START), "after start"),
    (Timing(start_time=START, end_time=START - timedelta(hours=1)), "after start"),
    (Timing(start_time=START), "either an end time or a duration"),
    (Timing(start_time=START, end_time=START + timedelta(hours=1), duration_hours=Decimal("1")), "either"),
    (Timing(duration_hours=Decimal("2")), "start time is required"),
    (Timing(start_time=START.replace(tzinfo=None), duration_hours=Decimal("2")), "timezone"),
    (Timing(start_time=START, duration_hours=Decimal("NaN")), "number of hours"),
    (Timing(start_time=START, duration_hours=Decimal("1e30")), "out of range"),
])
def test_invalid_hourly_timing(timing, message):
    with pytest.raises(InvalidDuration, match=message):
        compute_price(CARD, "hourly", timing)


def test_full_day_requires_date():
    with pytest.raises(InvalidDuration):
        compute_price(CARD, "full_day", Timing())


def test_unknown_booking_kind():
    with pytest.raises(InvalidDuration):
        compute_price(CARD, "weekly", hourly(1))


def test_non_positive_rate_is_rejected():
    with pytest.raises(InvalidDuration):
        compute_price(RateCard(Decimal("0"), Decimal("2000")), "hourly", hourly(1))
    with pytest.raises(InvalidDuration):
        compute_price(RateCard(Decimal("500"), Decimal("0")), "full_day", Timing(day=date(2025, 6, 1)))


def test_billable_hours_rounds_partial_hours_up():
    assert billable_hours(timedelta(minutes=1)) == 1
    assert billable_hours(timedelta(hours=2)) == 2
    assert billable_hours(timedelta(hours=2, seconds=1)) == 3


@pytest.mark.parametrize("hours, label", [
    (1, "1 hour"),
    (5, "5 hours"),
    (24, "1 day"),
    (25, "1 day 1 hour"),
    (50, "2 days 2 hours"),
])
def test_duration_label(hours, label):
    assert duration_label(hours) == label


def test_describe_booking_kind():
    start, end = full_day_window(date(2025, 6, 1))
    assert describe_booking_kind(start, end) == ("Full Day", FULL_DAY_LABEL)
    assert describe_booking_kind(START, START + timedelta(hours=3)) == ("Hourly", "3 hours")
    # 12 hours at other times is still hourly
    assert describe_booking_kind(START, START + timedelta(hours=12))[0] == "Hourly"


def test_hourly_duration_is_bounded():
    assert compute_price(CARD, "hourly", hourly(720)).duration_hours == 720
    with pytest.raises(InvalidDuration, match="out of range"):
        compute_price(CARD, "hourly", hourly(721))
    with pytest.raises(InvalidDuration, match="out of range"):
        compute_price(CARD, "hourly", hourly(10_000_000))
    with pytest.raises(InvalidDuration, match="out of range"):
        compute_price(CARD, "hourly", Timing(start_time=START, end_time=START + timedelta(days=365)))


def test_amount_too_large_for_storage_is_rejected():
    card = RateCard(hourly_rate=Decimal("50000000"), daily_rate=Decimal("2000"))
    with pytest.raises(InvalidDuration, match="price is out of range"):
        compute_price(card, "hourly", hourly(720))


NEW_YORK = ZoneInfo("America/New_York")


def test_hourly_span_across_dst_change_is_real_time():
    # Clocks jump from 02:00 to 03:00 on 2025-03-09
    start = datetime(2025, 3, 9, 1, 0, tzinfo=NEW_YORK)
    by_end = compute_price(CARD, "hourly", Timing(start_time=start, end_time=datetime(2025, 3, 9, 4, 0, tzinfo=NEW_YORK)))
    assert by_end.duration_hours == 2
    assert by_end.amount == Decimal("1000.00")

    by_duration = compute_price(CARD, "hourly", Timing(start_time=start, duration_hours=Decimal("2")))
    assert by_duration.window_end == datetime(2025, 3, 9, 4, 0, tzinfo=NEW_YORK)


def test_full_day_across_dst_change_reports_real_hours(monkeypatch):
    from app.core.config import settings

    monkeypatch.setattr(settings, "BOOKING_TIMEZONE", "America/New_York")
    monkeypatch.setattr(settings, "FULL_DAY_START_HOUR", 0)
    monkeypatch.setattr(settings, "FULL_DAY_END_HOUR", 12)
    q = compute_price(CARD, "full_day", Timing(day=date(2025, 3, 9)))
    assert q.duration_hours == 11
    assert q.duration_label.startswith("11 hours")
    assert q.amount == Decimal("2000.00")
    assert describe_booking_kind(q.window_start, q.window_end) == ("Full Day", q.duration_label)
