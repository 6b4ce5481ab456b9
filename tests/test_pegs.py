"""
Tests for pegslam.pegs (peg allocation and competition status).
"""

import random
from datetime import date, datetime, time
from zoneinfo import ZoneInfo

import pytest

from pegslam.exceptions import PegUnavailableError, ValidationError
from pegslam.pegs import (
    PegAssignment,
    available_pegs,
    competition_status,
    draw_pegs,
    first_free_peg,
    fisher_yates_shuffle,
    parse_clock,
    parse_day,
    random_draw,
    sequential_assignments,
    uk_day_start,
    uk_month_start,
    validate_requested_peg,
)

UK = ZoneInfo("Europe/London")


class TestAvailablePegs:
    def test_excludes_booked_and_none(self):
        assert available_pegs(5, [2, None, 4]) == [1, 3, 5]

    def test_first_free_peg(self):
        assert first_free_peg(3, [1]) == 2

    def test_full_venue_raises(self):
        with pytest.raises(PegUnavailableError) as exc_info:
            first_free_peg(2, [1, 2])
        assert exc_info.value.message == "No available pegs"

    def test_requested_peg_out_of_range(self):
        with pytest.raises(PegUnavailableError):
            validate_requested_peg(11, 10, [])
        with pytest.raises(PegUnavailableError):
            validate_requested_peg(0, 10, [])

    def test_requested_peg_taken(self):
        with pytest.raises(PegUnavailableError) as exc_info:
            validate_requested_peg(3, 10, [3])
        assert "already taken" in exc_info.value.message


class TestSequentialAssignments:
    def test_join_order_gets_one_to_n(self):
        result = sequential_assignments(["a", "b", "c"], 10)
        assert result == [PegAssignment("a", 1), PegAssignment("b", 2), PegAssignment("c", 3)]

    def test_extra_participants_left_unassigned(self):
        result = sequential_assignments(["a", "b", "c"], 2)
        assert [a.participant_id for a in result] == ["a", "b"]

    def test_no_participants_is_an_error(self):
        with pytest.raises(ValidationError):
            sequential_assignments([], 10)


class TestRandomDraw:
    def test_pegs_are_distinct_and_in_range(self):
        ids = [f"p{i}" for i in range(8)]
        result = random_draw(ids, 8, random.Random(42))
        pegs = [a.peg_number for a in result]
        assert sorted(pegs) == list(range(1, 9))
        assert [a.participant_id for a in result] == ids

    def test_seeded_draw_is_repeatable(self):
        ids = ["a", "b", "c", "d"]
        first = random_draw(ids, 20, random.Random(7))
        second = random_draw(ids, 20, random.Random(7))
        assert first == second

    def test_more_participants_than_pegs(self):
        result = random_draw(["a", "b", "c"], 2, random.Random(1))
        assert len(result) == 2
        assert {a.peg_number for a in result} == {1, 2}

    def test_shuffle_walks_down_from_last_index(self):
        """Each swap draws from randrange(i + 1), i = n-1 .. 1."""
        calls = []

        class Recorder(random.Random):
            def randrange(self, stop):
                calls.append(stop)
                return 0

        fisher_yates_shuffle([1, 2, 3, 4], Recorder())
        assert calls == [4, 3, 2]

    def test_draw_pegs_dispatches_on_mode(self):
        assert draw_pegs(["a"], 5) == [PegAssignment("a", 1)]
        assert len(draw_pegs(["a", "b"], 5, "random", random.Random(3))) == 2
        with pytest.raises(ValidationError):
            draw_pegs(["a"], 5, "alphabetical")


class TestCompetitionStatus:
    competition = {"date": "2030-06-01", "time": "08:00", "endTime": "15:00"}

    def test_upcoming_live_completed(self):
        assert competition_status(self.competition, datetime(2030, 6, 1, 7, 59, tzinfo=UK)) == "upcoming"
        assert competition_status(self.competition, datetime(2030, 6, 1, 8, 0, tzinfo=UK)) == "live"
        assert competition_status(self.competition, datetime(2030, 6, 1, 15, 0, tzinfo=UK)) == "live"
        assert competition_status(self.competition, datetime(2030, 6, 1, 15, 1, tzinfo=UK)) == "completed"

    def test_times_are_uk_local(self):
        """08:00 in London during BST is 07:00 UTC."""
        now = datetime(2030, 6, 1, 7, 30, tzinfo=ZoneInfo("UTC"))
        assert competition_status(self.competition, now) == "live"

    def test_no_end_runs_to_end_of_day(self):
        competition = {"date": "2030-01-10", "time": "09:00"}
        assert competition_status(competition, datetime(2030, 1, 10, 23, 0, tzinfo=UK)) == "live"
        assert competition_status(competition, datetime(2030, 1, 11, 0, 1, tzinfo=UK)) == "completed"

    def test_multi_day_competition(self):
        competition = {"date": "2030-03-01", "time": "10:00", "endDate": "2030-03-03", "endTime": "12:00"}
        assert competition_status(competition, datetime(2030, 3, 2, 3, 0, tzinfo=UK)) == "live"

    def test_uk_calendar_boundaries(self):
        now = datetime(2030, 7, 15, 13, 45, tzinfo=UK)
        assert uk_day_start(now) == datetime(2030, 7, 15, 0, 0, tzinfo=UK)
        assert uk_month_start(now) == datetime(2030, 7, 1, 0, 0, tzinfo=UK)

    @pytest.mark.parametrize(
        "competition",
        [
            {"date": "2030-02-30", "time": "08:00"},
            {"date": "2030-06-01", "time": "25:99"},
            {"date": "2030-06-01", "time": "08:00", "endTime": "3pm"},
            {"date": "2030-06-01", "endDate": "soon"},
            {"time": "08:00"},
        ],
    )
    def test_unparsable_schedule_counts_as_upcoming(self, competition):
        assert competition_status(competition, datetime(2030, 6, 1, 12, 0, tzinfo=UK)) == "upcoming"


class TestScheduleParsing:
    def test_parse_day(self):
        assert parse_day("2030-06-01") == date(2030, 6, 1)
        assert parse_day("2030-06-01T00:00:00.000Z") == date(2030, 6, 1)

    @pytest.mark.parametrize("value", ["2030-02-30", "2030-6-1", "", None])
    def test_parse_day_rejects(self, value):
        with pytest.raises(ValueError):
            parse_day(value)

    def test_parse_clock(self):
        assert parse_clock("7:05") == time(7, 5)
        assert parse_clock("23:59") == time(23, 59)

    @pytest.mark.parametrize("value", ["24:00", "12:60", "3pm", "12:5", "", None])
    def test_parse_clock_rejects(self, value):
        with pytest.raises(ValueError):
            parse_clock(value)
