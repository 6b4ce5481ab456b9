"""
Tests for pegslam.leaderboard.
"""

from pegslam.leaderboard import aggregate_leaderboard, angler_stats, entries_total


def _entry(user_id, weight, peg=None, **extra):
    return {"userId": user_id, "weight": weight, "pegNumber": peg, **extra}


class TestAggregateLeaderboard:
    """Multiple weigh-ins per competitor are added up and ranked."""

    def test_sums_and_ranks_heaviest_first(self):
        entries = [
            _entry("a", "100", 1),
            _entry("b", "150", 2),
            _entry("a", "80", 1),
        ]
        ranked = aggregate_leaderboard(entries)
        assert [(row["userId"], row["weight"], row["position"]) for row in ranked] == [
            ("a", "180", 1),
            ("b", "150", 2),
        ]
        assert ranked[0]["weighInCount"] == 2

    def test_latest_entry_is_row_base(self):
        entries = [_entry("a", "10", 1, id="first"), _entry("a", "5", 4, id="second")]
        (row,) = aggregate_leaderboard(entries)
        assert row["id"] == "second"
        assert row["pegNumber"] == 4
        assert row["weight"] == "15"

    def test_ties_keep_first_recorded_order(self):
        entries = [_entry("late", "50"), _entry("early", "50")]
        ranked = aggregate_leaderboard(entries)
        assert [row["userId"] for row in ranked] == ["late", "early"]
        assert [row["position"] for row in ranked] == [1, 2]

    def test_groups_by_team(self):
        entries = [
            {"teamId": "t1", "weight": "3.5"},
            {"teamId": "t2", "weight": "2"},
            {"teamId": "t1", "weight": "1.25"},
        ]
        ranked = aggregate_leaderboard(entries, key="teamId")
        assert ranked[0]["teamId"] == "t1"
        assert ranked[0]["weight"] == "4.75"

    def test_unparsable_weights_count_as_zero(self):
        ranked = aggregate_leaderboard([_entry("a", "dnw"), _entry("b", "1")])
        assert ranked[0]["userId"] == "b"
        assert ranked[1]["weight"] == "0"

    def test_entries_total(self):
        assert entries_total([_entry("a", "12.5 lbs"), _entry("a", "2")]) == 14.5


class TestAnglerStats:
    def test_career_numbers(self):
        entries = [_entry("a", "160"), _entry("a", "320"), _entry("a", "480")]
        stats = angler_stats(entries, positions=[1, 3, 5, None])
        assert stats["wins"] == 1
        assert stats["podiumFinishes"] == 2
        assert stats["bestCatch"] == "30.00 lbs"
        assert stats["averageWeight"] == "20.00 lbs"
        assert stats["totalWeight"] == "60.00 lbs"
        assert stats["totalCompetitions"] == 3
        assert "totalMatches" not in stats

    def test_no_catches_shows_dashes(self):
        stats = angler_stats([], participations=4)
        assert stats["bestCatch"] == "-"
        assert stats["averageWeight"] == "-"
        assert stats["totalWeight"] == "-"
        assert stats["wins"] == 0
        assert stats["totalMatches"] == 4
