"""Weekly meeting grid: slot generation and single-slot validation.

Both halves read the same :class:`GridPolicy`, so every slot the generator
emits is accepted by :func:`validate_slot`. All times are naive local
wall-clock ``HH:MM`` strings compared as minutes since midnight, and every
interval is half-open (``[start, end)``).
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from coursegrid.core.config import Settings, get_settings
from coursegrid.core.exceptions import ConfigurationError, InvalidSlotError

WEEK_DAYS = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")
DAY_ORDER = {day: index for index, day in enumerate(WEEK_DAYS)}

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def parse_time_to_minutes(value: str) -> int:
    if not isinstance(value, str) or not TIME_PATTERN.match(value):
        raise ValueError("Time must be in HH:MM 24-hour format")
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def format_minutes(total: int) -> str:
    hours, minutes = divmod(total, 60)
    return f"{hours:02d}:{minutes:02d}"


def intervals_overlap(start_a: int, end_a: int, start_b: int, end_b: int) -> bool:
    """Half-open overlap test: back-to-back intervals do not overlap."""
    return start_a < end_b and start_b < end_a


@dataclass(frozen=True)
class GridPolicy:
    day_start: int = 8 * 60
    day_end: int = 20 * 60
    slot_minutes: int = 50
    gap_minutes: int = 10
    blocked_start: int = 11 * 60 + 50
    blocked_end: int = 13 * 60
    days: tuple[str, ...] = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday")

    def __post_init__(self) -> None:
        if self.day_end <= self.day_start:
            raise ConfigurationError("Grid day end must be after day start")
        if self.slot_minutes <= 0:
            raise ConfigurationError("Grid slot length must be positive")
        if self.gap_minutes < 0:
            raise ConfigurationError("Grid gap cannot be negative")
        if self.blocked_end <= self.blocked_start:
            raise ConfigurationError("Blocked interval end must be after its start")
        if self.blocked_start < self.day_start or self.blocked_end > self.day_end:
            raise ConfigurationError("Blocked interval must lie inside the operating window")
        if not self.days:
            raise ConfigurationError("Grid needs at least one operating day")
        unknown = [day for day in self.days if day not in DAY_ORDER]
        if unknown:
            raise ConfigurationError(f"Unknown grid days: {', '.join(unknown)}")
        if len(set(self.days)) != len(self.days):
            raise ConfigurationError("Grid days must be unique")

    @classmethod
    def from_settings(cls, settings: Settings) -> "GridPolicy":
        return cls(
            day_start=parse_time_to_minutes(settings.grid_day_start),
            day_end=parse_time_to_minutes(settings.grid_day_end),
            slot_minutes=settings.grid_slot_minutes,
            gap_minutes=settings.grid_gap_minutes,
            blocked_start=parse_time_to_minutes(settings.grid_blocked_start),
            blocked_end=parse_time_to_minutes(settings.grid_blocked_end),
            days=tuple(settings.grid_days),
        )

    def snapshot(self) -> dict:
        return {
            "day_start": format_minutes(self.day_start),
            "day_end": format_minutes(self.day_end),
            "slot_minutes": self.slot_minutes,
            "gap_minutes": self.gap_minutes,
            "blocked_start": format_minutes(self.blocked_start),
            "blocked_end": format_minutes(self.blocked_end),
            "days": list(self.days),
        }


def get_grid_policy() -> GridPolicy:
    return GridPolicy.from_settings(get_settings())


@dataclass(frozen=True)
class GridSlot:
    day_of_week: str
    start_time: str
    end_time: str

    @property
    def sort_key(self) -> tuple[int, int]:
        return DAY_ORDER.get(self.day_of_week, len(DAY_ORDER)), parse_time_to_minutes(self.start_time)

    @property
    def start_minutes(self) -> int:
        return parse_time_to_minutes(self.start_time)

    @property
    def end_minutes(self) -> int:
        return parse_time_to_minutes(self.end_time)

    @property
    def label(self) -> str:
        return f"{self.day_of_week} {self.start_time}-{self.end_time}"


def generate_day(day: str, policy: GridPolicy) -> list[GridSlot]:
    slots: list[GridSlot] = []
    cursor = policy.day_start
    while True:
        end = cursor + policy.slot_minutes
        if intervals_overlap(cursor, end, policy.blocked_start, policy.blocked_end):
            cursor = policy.blocked_end
            continue
        if end > policy.day_end:
            break
        slots.append(GridSlot(day_of_week=day, start_time=format_minutes(cursor), end_time=format_minutes(end)))
        cursor = end + policy.gap_minutes
    return slots


def generate_grid(policy: GridPolicy | None = None) -> list[GridSlot]:
    """Every valid meeting slot, ordered by day then start time."""
    policy = policy or get_grid_policy()
    ordered_days = sorted(policy.days, key=DAY_ORDER.__getitem__)
    slots: list[GridSlot] = []
    for day in ordered_days:
        slots.extend(generate_day(day, policy))
    return slots


@dataclass(frozen=True)
class SlotCheck:
    ok: bool
    rule: str | None = None
    message: str | None = None


SLOT_OK = SlotCheck(ok=True)


def validate_slot(day: str, start_time: str, end_time: str, policy: GridPolicy | None = None) -> SlotCheck:
    """Check one proposed meeting; the first failing rule is reported."""
    policy = policy or get_grid_policy()

    if day not in policy.days:
        return SlotCheck(False, "invalid_day", f"Day must be one of: {', '.join(policy.days)}")

    if not isinstance(start_time, str) or not isinstance(end_time, str):
        return SlotCheck(False, "invalid_time_format", "Time must be in HH:MM format")
    if not TIME_PATTERN.match(start_time) or not TIME_PATTERN.match(end_time):
        return SlotCheck(False, "invalid_time_format", "Time must be in HH:MM format")

    start = parse_time_to_minutes(start_time)
    end = parse_time_to_minutes(end_time)

    if end - start != policy.slot_minutes:
        return SlotCheck(
            False,
            "invalid_duration",
            f"Meetings must be exactly {policy.slot_minutes} minutes long",
        )

    if start < policy.day_start or end > policy.day_end:
        return SlotCheck(
            False,
            "outside_operating_window",
            f"Meetings must fall between {format_minutes(policy.day_start)} and {format_minutes(policy.day_end)}",
        )

    if intervals_overlap(start, end, policy.blocked_start, policy.blocked_end):
        return SlotCheck(
            False,
            "overlaps_blocked_interval",
            "Meetings cannot overlap the blocked period "
            f"({format_minutes(policy.blocked_start)}-{format_minutes(policy.blocked_end)})",
        )

    return SLOT_OK


def ensure_valid_slot(day: str, start_time: str, end_time: str, policy: GridPolicy | None = None) -> None:
    check = validate_slot(day, start_time, end_time, policy)
    if not check.ok:
        raise InvalidSlotError(
            check.message or "Invalid meeting slot",
            details={
                "rule": check.rule,
                "day_of_week": day,
                "start_time": start_time,
                "end_time": end_time,
            },
        )
