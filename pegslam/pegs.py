"""
Peg allocation for competitions.

Pegs are numbered 1..pegs_total. Bookings take either a requested peg or the
lowest free one. The admin draw assigns pegs to every registered competitor
at once, either sequentially in join order or by a Fisher-Yates shuffle.
"""

from __future__ import annotations

import logging
import random
import re
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Any, Iterable, Mapping, Sequence
from zoneinfo import ZoneInfo

from pegslam.config import UK_TIMEZONE
from pegslam.exceptions import PegUnavailableError, ValidationError

logger = logging.getLogger(__name__)

DRAW_MODES = ("sequential", "random")

_UK = ZoneInfo(UK_TIMEZONE)
_END_OF_DAY = "23:59"
_CLOCK_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})$")


@dataclass(frozen=True)
class PegAssignment:
    participant_id: str
    peg_number: int

    def to_dict(self) -> dict[str, Any]:
        return {"participantId": self.participant_id, "pegNumber": self.peg_number}


def available_pegs(pegs_total: int, booked: Iterable[int | None]) -> list[int]:
    """Pegs in ``1..pegs_total`` that nobody holds, ascending."""
    taken = {peg for peg in booked if peg is not None}
    return [peg for peg in range(1, pegs_total + 1) if peg not in taken]


def first_free_peg(pegs_total: int, booked: Iterable[int | None]) -> int:
    """Lowest free peg, or PegUnavailableError when the venue is full."""
    free = available_pegs(pegs_total, booked)
    if not free:
        raise PegUnavailableError("No available pegs")
    return free[0]


def validate_requested_peg(peg_number: int, pegs_total: int, booked: Iterable[int | None]) -> None:
    if peg_number < 1 or peg_number > pegs_total:
        raise PegUnavailableError(
            f"Peg {peg_number} is out of range (1-{pegs_total})",
            peg_number=peg_number,
        )
    if peg_number in set(booked):
        raise PegUnavailableError(f"Peg {peg_number} is already taken", peg_number=peg_number)


def _require_participants(participant_ids: Sequence[str]) -> None:
    if not participant_ids:
        raise ValidationError("No participants to assign pegs to")


def sequential_assignments(participant_ids: Sequence[str], pegs_total: int) -> list[PegAssignment]:
    """
    Give the first ``min(n, pegs_total)`` participants pegs 1, 2, 3, ...

    Participants beyond the peg count are left unassigned.
    """
    _require_participants(participant_ids)
    count = min(len(participant_ids), pegs_total)
    return [PegAssignment(participant_ids[i], i + 1) for i in range(count)]


def fisher_yates_shuffle(items: list, rng: random.Random) -> list:
    """Shuffle ``items`` in place, walking from the last index down to 1."""
    for i in range(len(items) - 1, 0, -1):
        j = rng.randrange(i + 1)
        items[i], items[j] = items[j], items[i]
    return items


def random_draw(
    participant_ids: Sequence[str],
    pegs_total: int,
    rng: random.Random | None = None,
) -> list[PegAssignment]:
    """
    Randomly draw distinct pegs for the first ``min(n, pegs_total)`` participants.

    Args:
        participant_ids: Participants (or teams) in join order.
        pegs_total: Number of pegs at the venue.
        rng: Random source; defaults to ``random.SystemRandom``.
    """
    _require_participants(participant_ids)
    pegs = fisher_yates_shuffle(list(range(1, pegs_total + 1)), rng or random.SystemRandom())
    count = min(len(participant_ids), pegs_total)
    return [PegAssignment(participant_ids[i], pegs[i]) for i in range(count)]


def draw_pegs(
    participant_ids: Sequence[str],
    pegs_total: int,
    mode: str = "sequential",
    rng: random.Random | None = None,
) -> list[PegAssignment]:
    if mode == "sequential":
        return sequential_assignments(participant_ids, pegs_total)
    if mode == "random":
        return random_draw(participant_ids, pegs_total, rng)
    raise ValidationError(f"Unknown draw mode: {mode!r}", field="mode")


# =============================================================================
# Competition status
# =============================================================================


def parse_day(value: str) -> date:
    """``YYYY-MM-DD`` (anything after the first ten characters is ignored); ValueError if not a real date."""
    if not isinstance(value, str) or len(value) < 10:
        raise ValueError(f"invalid date: {value!r}")
    return date.fromisoformat(value[:10])


def parse_clock(value: str) -> time:
    """``H:MM`` or ``HH:MM`` on a 24-hour clock; ValueError otherwise."""
    match = _CLOCK_PATTERN.match(value.strip()) if isinstance(value, str) else None
    if match is None:
        raise ValueError(f"invalid time: {value!r}")
    return time(int(match.group(1)), int(match.group(2)))


def _uk_datetime(day: str, clock: str | None) -> datetime:
    parsed_time = parse_clock(clock) if clock else time(0, 0)
    return datetime.combine(parse_day(day), parsed_time, tzinfo=_UK)


def competition_window(competition: Mapping[str, Any]) -> tuple[datetime, datetime]:
    """Start and end of a competition as Europe/London datetimes."""
    start = _uk_datetime(competition["date"], competition.get("time"))
    end_date = competition.get("endDate")
    end_time = competition.get("endTime")

    if end_date and end_time:
        end = _uk_datetime(end_date, end_time)
    elif end_date:
        end = _uk_datetime(end_date, _END_OF_DAY)
    elif end_time:
        end = _uk_datetime(competition["date"], end_time)
    else:
        end = _uk_datetime(competition["date"], _END_OF_DAY)
    return start, end


def competition_status(competition: Mapping[str, Any], now: datetime | None = None) -> str:
    """
    ``"upcoming"``, ``"live"`` or ``"completed"`` relative to UK local time.

    A competition with no end date or time runs until 23:59 on its start day.
    Unparsable stored dates or times count as upcoming.
    """
    try:
        start, end = competition_window(competition)
    except (KeyError, ValueError) as e:
        logger.warning(
            "competition_schedule_invalid",
            extra={"competition_id": competition.get("id"), "error": str(e)},
        )
        return "upcoming"
    current = (now or datetime.now(tz=_UK)).astimezone(_UK)
    if current < start:
        return "upcoming"
    if current <= end:
        return "live"
    return "completed"


def uk_month_start(now: datetime | None = None) -> datetime:
    current = (now or datetime.now(tz=_UK)).astimezone(_UK)
    return datetime.combine(current.date().replace(day=1), time(0, 0), tzinfo=_UK)


def uk_day_start(now: datetime | None = None) -> datetime:
    current = (now or datetime.now(tz=_UK)).astimezone(_UK)
    return datetime.combine(current.date(), time(0, 0), tzinfo=_UK)
