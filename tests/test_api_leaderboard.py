"""
API tests for weigh-ins and competition leaderboards.
"""

import pytest


@pytest.fixture
def competition(make_competition):
    return make_competition()


def _weigh_in(client, admin, competition, **fields):
    return client.post(
        "/api/admin/leaderboard",
        json={"competitionId": competition["id"], **fields},
        headers=admin["headers"],
    )


class TestWeighIns:
    def test_pounds_and_ounces_stored_as_ounces(self, client, admin, competition, make_angler):
        angler = make_angler()
        resp = _weigh_in(client, admin, competition, userId=angler["id"], pounds=12, ounces=4, pegNumber=3)
        assert resp.status_code == 201
        body = resp.json()
        assert body["weight"] == "196"
        assert "pounds" not in body
        assert "ounces" not in body

    def test_lb_oz_string(self, client, admin, competition, make_angler):
        resp = _weigh_in(client, admin, competition, userId=make_angler()["id"], weight="3 lb 2 oz")
        assert resp.json()["weight"] == "50"

    def test_weight_required(self, client, admin, competition, make_angler):
        resp = _weigh_in(client, admin, competition, userId=make_angler()["id"])
        assert resp.status_code == 400
        assert resp.json()["message"] == "Either weight or pounds and ounces is required"

    def test_ounces_out_of_range(self, client, admin, competition, make_angler):
        resp = _weigh_in(client, admin, competition, userId=make_angler()["id"], pounds=1, ounces=16)
        assert resp.status_code == 400

    def test_unknown_competition(self, client, admin, make_angler):
        resp = _weigh_in(client, admin, {"id": "missing"}, userId=make_angler()["id"], weight="10")
        assert resp.status_code == 404

    def test_requires_staff(self, client, competition, make_angler):
        angler = make_angler()
        resp = client.post(
            "/api/admin/leaderboard",
            json={"competitionId": competition["id"], "userId": angler["id"], "weight": "10"},
            headers=angler["headers"],
        )
        assert resp.status_code == 401

    def test_update_and_delete(self, client, admin, competition, make_angler):
        entry = _weigh_in(client, admin, competition, userId=make_angler()["id"], weight="10").json()

        url = f"/api/admin/leaderboard/{entry['id']}"
        resp = client.put(url, json={"pounds": 1, "ounces": 0}, headers=admin["headers"])
        assert resp.json()["weight"] == "16"

        resp = client.delete(url, headers=admin["headers"])
        assert resp.json()["message"] == "Leaderboard entry deleted successfully"
        resp = client.delete(url, headers=admin["headers"])
        assert resp.status_code == 404
        assert resp.json()["message"] == "Leaderboard entry not found"


class TestLeaderboard:
    def test_individual_totals_ranked(self, client, admin, competition, make_angler):
        ann = make_angler("ann_a", firstName="Ann", lastName="Lee", club="Carp Kings")
        ben = make_angler("ben_b")
        _weigh_in(client, admin, competition, userId=ann["id"], weight="100", pegNumber=4)
        _weigh_in(client, admin, competition, userId=ben["id"], weight="150", pegNumber=7)
        _weigh_in(client, admin, competition, userId=ann["id"], weight="80", pegNumber=4)

        resp = client.get(f"/api/competitions/{competition['id']}/leaderboard")
        assert resp.headers["cache-control"] == "public, max-age=15"
        rows = resp.json()
        assert rows[0] == {
            "position": 1,
            "userId": ann["id"],
            "anglerName": "Ann Lee",
            "username": "ann_a",
            "club": "Carp Kings",
            "pegNumber": 4,
            "weight": "180",
            "weighInCount": 2,
        }
        assert (rows[1]["username"], rows[1]["position"], rows[1]["weight"]) == ("ben_b", 2, "150")

    def test_team_totals(self, client, admin, make_competition, make_angler, repo):
        competition = make_competition(competitionMode="team", maxTeamMembers=2)
        reds = repo.create_team(competition["id"], make_angler("ann_a")["id"], "Reds")
        blues = repo.create_team(competition["id"], make_angler("ben_b")["id"], "Blues")
        repo.update_team_peg(blues["id"], 2)
        _weigh_in(client, admin, competition, teamId=reds["id"], weight="40")
        _weigh_in(client, admin, competition, teamId=blues["id"], weight="30")
        _weigh_in(client, admin, competition, teamId=blues["id"], weight="30")

        rows = client.get(f"/api/competitions/{competition['id']}/leaderboard").json()
        assert [(r["teamName"], r["position"], r["weight"]) for r in rows] == [("Blues", 1, "60"), ("Reds", 2, "40")]
        assert rows[0]["pegNumber"] == 2

    def test_empty_and_unknown(self, client, competition):
        assert client.get(f"/api/competitions/{competition['id']}/leaderboard").json() == []
        assert client.get("/api/competitions/missing/leaderboard").status_code == 404


class TestEntryHistory:
    def test_participant_entries_total(self, client, admin, competition, make_angler):
        angler = make_angler()
        _weigh_in(client, admin, competition, userId=angler["id"], weight="10")
        _weigh_in(client, admin, competition, userId=angler["id"], weight="6")

        body = client.get(
            f"/api/admin/competitions/{competition['id']}/participants/{angler['id']}/entries",
            headers=admin["headers"],
        ).json()
        assert [e["weight"] for e in body["entries"]] == ["6", "10"]
        assert body["totalWeight"] == "16"

    def test_team_entries_total(self, client, admin, make_competition, make_angler, repo):
        competition = make_competition(competitionMode="team", maxTeamMembers=2)
        team = repo.create_team(competition["id"], make_angler()["id"], "Reds")
        _weigh_in(client, admin, competition, teamId=team["id"], pounds=2, ounces=8)

        body = client.get(
            f"/api/admin/competitions/{competition['id']}/teams/{team['id']}/entries",
            headers=admin["headers"],
        ).json()
        assert body["totalWeight"] == "40"
