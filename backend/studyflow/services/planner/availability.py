"""Free-time computation: work window minus busy calendar blocks."""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, tzinfo
from typing import Dict, Iterable, List, Mapping, NamedTuple, Optional

from studyflow.api.schemas.planner import BusyBlock, PlannerPreferences
from studyflow.services.planner.timeutils import (
    MINUTES_PER_HOUR,
    date_range,
    hours_to_minutes,
    is_weekend,
    to_local_naive,
)

MIN_SLOT_MINUTES = 1


class Slot(NamedTuple):
    """Half-open interval of minutes from midnight."""

    start: int
    end: int

    @property
    def minutes(self) -> int:
        return max(0, self.end - self.start)


@dataclass
class DayAvailability:
    day: date
    is_weekend: bool
    capacity_minutes: int
    slots: List[Slot] = field(default_factory=list)
    busy: List[Slot] = field(default_factory=list)
    # Study minutes already on the calendar; not included in capacity_minutes.
    booked_minutes: int = 0


def split_busy_blocks(
    blocks: Iterable[BusyBlock],
    range_start: date,
    range_end: date,
    tz: Optional[tzinfo] = None,
) -> Dict[date, List[Slot]]:
    """Clip busy blocks to day boundaries and group them per day.

    Starts are floored and ends ceiled to whole minutes so rounding never
    shrinks a commitment. Blocks with non-positive length are ignored.
    """
    per_day: Dict[date, List[Slot]] = {}
    window_start = datetime.combine(range_start, datetime.min.time())
    window_end = datetime.combine(range_end + timedelta(days=1), datetime.min.time())

    for block in blocks:
        start = to_local_naive(block.start, tz)
        end = to_local_naive(block.end, tz)
        if end <= start or end <= window_start or start >= window_end:
            continue

        cursor = max(start.date(), range_start)
        while cursor <= range_end:
            day_start = datetime.combine(cursor, datetime.min.time())
            day_end = day_start + timedelta(days=1)
            if day_start >= end:
                break
            overlap_start = max(start, day_start)
            overlap_end = min(end, day_end)
            if overlap_end > overlap_start:
                start_minute = math.floor((overlap_start - day_start).total_seconds() / 60)
                end_minute = math.ceil((overlap_end - day_start).total_seconds() / 60)
                per_day.setdefault(cursor, []).append(Slot(start_minute, end_minute))
            if day_end >= end:
                break
            cursor += timedelta(days=1)

    return {day: sorted(intervals) for day, intervals in per_day.items()}


def subtract_busy(window: Slot, busy: Iterable[Slot]) -> List[Slot]:
    """Remove busy intervals from a single work window."""
    slots = [window]
    for block in busy:
        busy_start = max(window.start, min(window.end, block.start))
        busy_end = max(window.start, min(window.end, block.end))
        if busy_end <= busy_start:
            continue
        remaining: List[Slot] = []
        for slot in slots:
            if busy_end <= slot.start or busy_start >= slot.end:
                remaining.append(slot)
                continue
            if busy_start > slot.start:
                remaining.append(Slot(slot.start, busy_start))
            if busy_end < slot.end:
                remaining.append(Slot(busy_end, slot.end))
        slots = remaining
        if not slots:
            break
    return [slot for slot in sorted(slots) if slot.minutes >= MIN_SLOT_MINUTES]


def daily_slots(prefs: PlannerPreferences, busy: Iterable[Slot], weekend: bool) -> List[Slot]:
    if weekend and not prefs.allow_weekends:
        return []
    window = Slot(prefs.start_hour * MINUTES_PER_HOUR, prefs.end_hour * MINUTES_PER_HOUR)
    if window.end <= window.start:
        return []
    return subtract_busy(window, busy)


def capacity_for(prefs: PlannerPreferences, slots: List[Slot], booked_minutes: int = 0) -> int:
    """Minutes still plannable: the daily cap less booked study time, bounded by free slots."""
    if not slots:
        return 0
    remaining_cap = max(0, hours_to_minutes(prefs.daily_cap_hours) - booked_minutes)
    return min(remaining_cap, sum(slot.minutes for slot in slots))


def build_availability(
    busy_blocks: Iterable[BusyBlock],
    start: date,
    end: date,
    prefs: PlannerPreferences,
    tz: Optional[tzinfo] = None,
    booked_minutes: Optional[Mapping[date, int]] = None,
) -> List[DayAvailability]:
    """Return one availability record per day from ``start`` to ``end`` inclusive."""
    busy_index = split_busy_blocks(busy_blocks, start, end, tz)
    booked_minutes = booked_minutes or {}
    days: List[DayAvailability] = []
    for day in date_range(start, end):
        weekend = is_weekend(day)
        busy = busy_index.get(day, [])
        slots = daily_slots(prefs, busy, weekend)
        booked = booked_minutes.get(day, 0)
        days.append(
            DayAvailability(
                day=day,
                is_weekend=weekend,
                capacity_minutes=capacity_for(prefs, slots, booked),
                slots=slots,
                busy=busy,
                booked_minutes=booked,
            )
        )
    return days
