"""
Recurrence Expander Service.
Turns a reservation request into concrete, time-ordered occurrences.
"""
import logging
import re
from datetime import datetime, time, timedelta
from typing import List

from app.core.constants import FALLBACK_HOUR, FALLBACK_MINUTE, DAILY_STEP_DAYS, WEEKLY_STEP_DAYS
from app.core.errors import ValidationError
from app.schemas.reservation import ReservationRequest, ReservationOccurrence, RepeatPattern

logger = logging.getLogger(__name__)

# 08:30, 8:30, 08:30 AM, 8:30pm
TIME_PATTERN = re.compile(r"(\d{1,2}):(\d{2})\s*(AM|PM)?", re.IGNORECASE)

REQUIRED_FIELDS = ("date", "start_time", "end_time", "user_id", "space_id", "parking_lot_id")

STEP_DAYS = {
    RepeatPattern.DAILY.value: DAILY_STEP_DAYS,
    RepeatPattern.WEEKLY.value: WEEKLY_STEP_DAYS,
}

# end_date is inclusive up to its last millisecond
END_OF_DAY = time(23, 59, 59, 999000)


def parse_time_of_day(value: str) -> time:
    """
    Parse a wall-clock time in 24-hour or 12-hour form.
    Unparseable input falls back to 08:00 and is logged.
    """
    match = TIME_PATTERN.search(value or "")
    if match:
        hours = int(match.group(1))
        minutes = int(match.group(2))
        meridiem = (match.group(3) or "").upper()

        if meridiem == "PM" and hours < 12:
            hours += 12
        if meridiem == "AM" and hours == 12:
            hours = 0

        if hours < 24 and minutes < 60:
            return time(hours, minutes)

    logger.warning(
        "Could not parse time %r, falling back to %02d:%02d",
        value, FALLBACK_HOUR, FALLBACK_MINUTE,
    )
    return time(FALLBACK_HOUR, FALLBACK_MINUTE)


def _is_missing(name: str, value) -> bool:
    if value is None:
        return True
    if name == "space_id":
        # space ids start at 1
        return value < 1
    return isinstance(value, str) and not value.strip()


def _resolve_pattern(request: ReservationRequest) -> str:
    if not request.recurring:
        return RepeatPattern.NONE.value
    pattern = (request.repeat_pattern or "").strip().lower()
    # recurring without an explicit pattern repeats daily
    return pattern or RepeatPattern.DAILY.value


def build_occurrences(request: ReservationRequest) -> List[ReservationOccurrence]:
    """
    Expand a reservation request into occurrences ordered by start.

    Non-recurring requests (or pattern "none") yield exactly one occurrence.
    Recurring requests step daily or weekly while the start is on or before
    the end of `end_date`. End times are not checked against start times.
    """
    missing = [name for name in REQUIRED_FIELDS if _is_missing(name, getattr(request, name))]
    if missing:
        raise ValidationError(f"Missing required reservation fields: {', '.join(missing)}")

    starts_at = datetime.combine(request.date, parse_time_of_day(request.start_time))
    ends_at = datetime.combine(request.date, parse_time_of_day(request.end_time))

    def occurrence(start: datetime, end: datetime) -> ReservationOccurrence:
        return ReservationOccurrence(
            user_id=request.user_id,
            parking_lot_id=request.parking_lot_id,
            space_id=request.space_id,
            starts_at=start,
            ends_at=end,
        )

    pattern = _resolve_pattern(request)
    if pattern == RepeatPattern.NONE.value:
        return [occurrence(starts_at, ends_at)]

    if request.end_date is None:
        raise ValidationError("end_date is required for recurring reservations")

    end_limit = datetime.combine(request.end_date, END_OF_DAY)
    step_days = STEP_DAYS.get(pattern)

    occurrences: List[ReservationOccurrence] = []
    while starts_at <= end_limit:
        occurrences.append(occurrence(starts_at, ends_at))

        if step_days is None:
            logger.warning("Unrecognized repeat pattern %r, keeping first occurrence only", pattern)
            break

        step = timedelta(days=step_days)
        starts_at += step
        ends_at += step

    if not occurrences:
        logger.info(
            "Recurring reservation for space %s ends %s, before its first day %s",
            request.space_id, request.end_date, request.date,
        )
    return occurrences
