"""
Conflict validation for recurring weekly schedules.

Two schedules conflict when they fall on the same day of the week, belong to
the same conflict domain, and are separated by less than the grace period.
When a proposal conflicts, alternative start times are suggested right after
each blocking schedule (plus grace), keeping the proposal's duration and
staying inside the operating window.
"""

import heapq
from dataclasses import dataclass, field
from typing import Iterable, Optional

from ...shared.errors import InvalidInputError
from .time_calculator import format_minutes, parse_time_of_day, windows_conflict

DEFAULT_OPERATING_WINDOW = (8 * 60, 20 * 60)
DEFAULT_MAX_SUGGESTIONS = 3


@dataclass(frozen=True)
class ScheduleWindow:
    day_of_week: int
    start: int  # minutes since midnight
    end: int
    category: str
    id: Optional[int] = None
    title: Optional[str] = None

    @classmethod
    def from_times(
        cls,
        day_of_week: int,
        start_time: str,
        end_time: str,
        category: str,
        id: Optional[int] = None,
        title: Optional[str] = None,
    ) -> "ScheduleWindow":
        start = parse_time_of_day(start_time)
        end = parse_time_of_day(end_time)
        if start >= end:
            raise InvalidInputError(
                f"startTime ({start_time}) must be before endTime ({end_time}); "
                "overnight schedules are not supported"
            )
        return cls(day_of_week, start, end, category, id, title)

    @property
    def start_time(self) -> str:
        return format_minutes(self.start)

    @property
    def end_time(self) -> str:
        return format_minutes(self.end)

    @property
    def duration(self) -> int:
        return self.end - self.start

    def describe(self) -> str:
        return f"{self.title or self.category} ({self.start_time} - {self.end_time})"


class ConflictDomains:
    """Maps each category to the domain whose members may not overlap each other"""

    def __init__(self, domains: dict[str, list[str]]):
        self._domain_of: dict[str, str] = {}
        for name, members in domains.items():
            for category in members:
                self._domain_of[category] = name

    def domain_of(self, category: str) -> str:
        # Unlisted categories form their own single-member domain
        return self._domain_of.get(category, category)

    def peers(self, category: str) -> set[str]:
        domain = self.domain_of(category)
        members = {c for c, d in self._domain_of.items() if d == domain}
        members.add(category)
        return members

    def same_domain(self, a: str, b: str) -> bool:
        return self.domain_of(a) == self.domain_of(b)


@dataclass
class ValidationResult:
    is_valid: bool
    message: str
    grace_minutes: int
    conflicts: list[ScheduleWindow] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)


def _relevant(
    proposed: ScheduleWindow, existing: Iterable[ScheduleWindow], domains: ConflictDomains
) -> list[ScheduleWindow]:
    return [
        other
        for other in existing
        if other.day_of_week == proposed.day_of_week
        and domains.same_domain(other.category, proposed.category)
        and (proposed.id is None or other.id != proposed.id)
    ]


def find_conflicts(
    proposed: ScheduleWindow,
    existing: Iterable[ScheduleWindow],
    grace_minutes: int,
    domains: ConflictDomains,
) -> list[ScheduleWindow]:
    return [
        other
        for other in _relevant(proposed, existing, domains)
        if windows_conflict(proposed.start, proposed.end, other.start, other.end, grace_minutes)
    ]


def suggest_start_times(
    proposed: ScheduleWindow,
    day_schedules: list[ScheduleWindow],
    conflicts: list[ScheduleWindow],
    grace_minutes: int,
    operating_window: tuple[int, int] = DEFAULT_OPERATING_WINDOW,
    max_suggestions: int = DEFAULT_MAX_SUGGESTIONS,
) -> list[str]:
    """
    Start times of the proposal's duration that clear every schedule of the day.

    Candidates start at `blocker.end + grace`, moved up to the opening of the
    operating window when earlier. A candidate that is itself blocked spawns
    candidates after its own blockers. Candidate starts never decrease, so the
    search ends once it leaves the operating window.
    """
    window_start, window_end = operating_window
    duration = proposed.duration

    queue = [c.end + grace_minutes for c in conflicts]
    heapq.heapify(queue)
    seen: set[int] = set()
    suggestions: list[str] = []

    while queue and len(suggestions) < max_suggestions:
        start = max(heapq.heappop(queue), window_start)
        if start in seen:
            continue
        seen.add(start)

        end = start + duration
        if end > window_end:
            continue

        blockers = [
            other
            for other in day_schedules
            if windows_conflict(start, end, other.start, other.end, grace_minutes)
        ]
        if not blockers:
            suggestions.append(format_minutes(start))
            continue

        for blocker in blockers:
            heapq.heappush(queue, blocker.end + grace_minutes)

    return suggestions


def validate_schedule(
    proposed: ScheduleWindow,
    existing: Iterable[ScheduleWindow],
    grace_minutes: int,
    domains: ConflictDomains,
    operating_window: tuple[int, int] = DEFAULT_OPERATING_WINDOW,
    max_suggestions: int = DEFAULT_MAX_SUGGESTIONS,
) -> ValidationResult:
    """
    Check a proposed schedule against a snapshot of existing ones.

    Pure: the caller supplies the snapshot and decides what to do with the
    result.

    Raises:
        InvalidInputError: grace_minutes is negative
    """
    if grace_minutes < 0:
        raise InvalidInputError("graceMinutes must be zero or positive")

    day_schedules = _relevant(proposed, existing, domains)
    conflicts = find_conflicts(proposed, day_schedules, grace_minutes, domains)

    if not conflicts:
        return ValidationResult(
            is_valid=True, message="Schedule is available", grace_minutes=grace_minutes
        )

    suggestions = suggest_start_times(
        proposed,
        day_schedules,
        conflicts,
        grace_minutes,
        operating_window=operating_window,
        max_suggestions=max_suggestions,
    )
    details = ", ".join(c.describe() for c in conflicts)

    return ValidationResult(
        is_valid=False,
        message=f"Conflicts with: {details}. Grace period: {grace_minutes} minutes.",
        grace_minutes=grace_minutes,
        conflicts=conflicts,
        suggestions=suggestions,
    )
