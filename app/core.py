# app/core.py

from datetime import datetime, time, timedelta
from typing import Dict, Iterable, List, Optional, Tuple

from app import config
from app.errors import ValidationError
from app.schemas import ScheduleType, SlotState

WEEKDAYS = {
    1: "Monday",
    2: "Tuesday",
    3: "Wednesday",
    4: "Thursday",
    5: "Friday",
}


def parse_hhmm(value: str) -> time:
    try:
        return datetime.strptime(value, "%H:%M").time()
    except ValueError:
        raise ValidationError(f"Invalid time '{value}', expected HH:MM")


def format_time(value: time) -> str:
    # 13:15 -> "1:15 PM"
    hour = value.hour % 12 or 12
    suffix = "PM" if value.hour >= 12 else "AM"
    return f"{hour}:{value.minute:02d} {suffix}"


def check_weekday(weekday: int) -> int:
    if weekday not in WEEKDAYS:
        raise ValidationError("weekday must be an integer between 1 (Monday) and 5 (Friday)")
    return weekday


class SlotPair:
    __slots__ = ("start", "end")

    def __init__(self, start: time, end: time):
        self.start = start
        self.end = end

    @property
    def label(self) -> str:
        return f"{format_time(self.start)} - {format_time(self.end)}"

    def __eq__(self, other):
        if not isinstance(other, SlotPair):
            return NotImplemented
        return (self.start, self.end) == (other.start, other.end)

    def __repr__(self):
        return f"SlotPair({self.start:%H:%M}-{self.end:%H:%M})"


class TimeGrid:
    """Fixed-width time slots over one working day.

    Boundaries run from ``day_start`` up to and including ``day_end`` in
    steps of ``interval_minutes``; consecutive boundaries form the slots.
    Computed once at construction, never mutated afterwards.
    """

    def __init__(
        self,
        day_start: time = time(7, 0),
        day_end: time = time(20, 45),
        interval_minutes: int = 75,
    ):
        if interval_minutes <= 0:
            raise ValueError("interval_minutes must be positive")
        if day_start >= day_end:
            raise ValueError("day_start must be before day_end")

        self.day_start = day_start
        self.day_end = day_end
        self.interval_minutes = interval_minutes

        boundaries = []
        anchor = datetime.combine(datetime.min.date(), day_start)
        last = datetime.combine(datetime.min.date(), day_end)
        current = anchor
        while current <= last:
            boundaries.append(current.time())
            current += timedelta(minutes=interval_minutes)

        self._boundaries: Tuple[time, ...] = tuple(boundaries)
        self._pairs: Tuple[SlotPair, ...] = tuple(
            SlotPair(boundaries[i], boundaries[i + 1]) for i in range(len(boundaries) - 1)
        )
        self._successors: Dict[time, time] = {p.start: p.end for p in self._pairs}

    @classmethod
    def from_settings(cls) -> "TimeGrid":
        return cls(
            day_start=parse_hhmm(config.GRID_DAY_START),
            day_end=parse_hhmm(config.GRID_DAY_END),
            interval_minutes=config.GRID_INTERVAL_MINUTES,
        )

    def slot_boundaries(self) -> Tuple[time, ...]:
        return self._boundaries

    def slot_pairs(self) -> Tuple[SlotPair, ...]:
        return self._pairs

    def is_slot_start(self, start: time) -> bool:
        return start in self._successors

    def successor(self, start: time) -> time:
        """End of the slot that begins at ``start``."""
        end = self._successors.get(start)
        if end is None:
            raise ValidationError(f"{start:%H:%M} is not the start of a slot on the time grid")
        return end

    def check_slot(self, start: time, end: time) -> None:
        # every block/booking covers exactly one grid slot
        for value in (start, end):
            if value.second or value.microsecond or value.tzinfo is not None:
                raise ValidationError("start and end times must be whole minutes without a timezone")
        if start not in self._boundaries or end not in self._boundaries:
            raise ValidationError("start and end times must fall on time grid boundaries")
        if self.successor(start) != end:
            raise ValidationError("end time must be the grid boundary immediately after start time")


DEFAULT_GRID = TimeGrid.from_settings()


def slot_boundaries() -> Tuple[time, ...]:
    return DEFAULT_GRID.slot_boundaries()


def slot_pairs() -> Tuple[SlotPair, ...]:
    return DEFAULT_GRID.slot_pairs()


_STATE_BY_TYPE = {
    ScheduleType.class_: SlotState.occupied_class,
    ScheduleType.office_hour: SlotState.occupied_office_hour,
    ScheduleType.consultation: SlotState.bookable,
}


def normalize_time(value: time) -> time:
    # map keys and lookups only; writes validate through TimeGrid.check_slot
    return value.replace(second=0, microsecond=0, tzinfo=None)


class AvailabilityMap:
    """Slot classification for one professor's schedule blocks.

    Only slots explicitly marked ``consultation`` are bookable; empty slots
    are ``unset`` and never bookable. Built once per block set, keyed by
    (weekday, start time).
    """

    def __init__(self, blocks: Iterable, grid: TimeGrid = DEFAULT_GRID):
        self.grid = grid
        self._by_key = {}
        for block in blocks:
            self._by_key[(block.weekday, normalize_time(block.start_time))] = block

    def _key(self, weekday: int, start: time):
        check_weekday(weekday)
        start = normalize_time(start)
        if not self.grid.is_slot_start(start):
            raise ValidationError(f"{start:%H:%M} is not the start of a slot on the time grid")
        return weekday, start

    def block_at(self, weekday: int, start: time):
        return self._by_key.get(self._key(weekday, start))

    def classify(self, weekday: int, start: time) -> SlotState:
        block = self.block_at(weekday, start)
        if block is None:
            return SlotState.unset
        return _STATE_BY_TYPE[ScheduleType(block.type)]

    def is_bookable(self, weekday: int, start: time) -> bool:
        return self.classify(weekday, start) is SlotState.bookable

    def cells(self) -> List[dict]:
        """Every weekday x slot cell, Monday first, earliest slot first."""
        out = []
        for weekday in WEEKDAYS:
            for pair in self.grid.slot_pairs():
                block = self._by_key.get((weekday, pair.start))
                state = self.classify(weekday, pair.start)
                out.append({
                    "weekday": weekday,
                    "start_time": pair.start,
                    "end_time": pair.end,
                    "label": pair.label,
                    "state": state,
                    "bookable_by_students": state is SlotState.bookable and bool(block.visible_to_students),
                    "block_id": block.id if block is not None else None,
                    "note": block.note if block is not None else None,
                    "visible_to_students": block.visible_to_students if block is not None else None,
                })
        return out


def classify_slot(blocks: Iterable, weekday: int, start: time, grid: Optional[TimeGrid] = None) -> SlotState:
    return AvailabilityMap(blocks, grid or DEFAULT_GRID).classify(weekday, start)
