"""
API tests for team competitions: creating, joining and leaving teams.
"""

import pytest


@pytest.fixture
def team_competition(make_competition):
    return make_competition(name="Pairs Slam", competitionMode="team", maxTeamMembers=2)


@pytest.fixture
def captain(make_angler):
    return make_angler("cap_tain")


@pytest.fixture
def team(client, team_competition, captain):
    resp = client.post(
        f"/api/competitions/{team_competition['id']}/teams",
        json={"name": "Reds"},
        headers=captain["headers"],
    )
    assert resp.status_code == 201
    return resp.json()


class TestCreateTeam:
    def test_creator_is_captain(self, client, team_competition, captain, team):
        resp = client.get(f"/api/competitions/{team_competition['id']}/my-team", headers=captain["headers"])
        body = resp.json()
        assert body["id"] == team["id"]
        assert body["isCaptain"] is True
        assert body["inviteCode"] == team["inviteCode"]
        assert [m["username"] for m in body["members"]] == ["cap_tain"]
        assert body["members"][0]["isCaptain"] is True

    def test_individual_competition_rejects_teams(self, client, make_competition, captain):
        competition = make_competition()
        resp = client.post(
            f"/api/competitions/{competition['id']}/teams", json={"name": "Reds"}, headers=captain["headers"]
        )
        assert resp.status_code == 400

    def test_one_team_per_competition(self, client, team_competition, captain, team):
        resp = client.post(
            f"/api/competitions/{team_competition['id']}/teams", json={"name": "Blues"}, headers=captain["headers"]
        )
        assert resp.status_code == 409

    def test_no_team_yet(self, client, team_competition, make_angler):
        angler = make_angler()
        resp = client.get(f"/api/competitions/{team_competition['id']}/my-team", headers=angler["headers"])
        assert resp.status_code == 404
        assert resp.json()["message"] == "You don't have a team for this competition"

    def test_public_team_list(self, client, team_competition, team):
        rows = client.get(f"/api/competitions/{team_competition['id']}/teams").json()
        assert len(rows) == 1
        assert rows[0]["memberCount"] == 1
        assert rows[0]["creatorName"] == "Cap Angler"
        assert "inviteCode" not in rows[0]


class TestJoinTeam:
    def test_join_with_invite_code(self, client, team_competition, team, make_angler):
        mate = make_angler("mate_one")
        resp = client.post("/api/teams/join", json={"inviteCode": team["inviteCode"].lower()}, headers=mate["headers"])
        assert resp.status_code == 200
        assert resp.json()["message"] == "Successfully joined team"

        view = client.get(f"/api/teams/{team['id']}", headers=mate["headers"]).json()
        assert len(view["members"]) == 2
        assert "inviteCode" not in view

        mine = client.get("/api/user/teams", headers=mate["headers"]).json()
        assert mine[0]["competitionName"] == "Pairs Slam"
        assert mine[0]["memberCount"] == 2
        assert mine[0]["maxMembers"] == 2

    def test_team_full(self, client, team, make_angler):
        code = {"inviteCode": team["inviteCode"]}
        client.post("/api/teams/join", json=code, headers=make_angler("mate_one")["headers"])
        resp = client.post("/api/teams/join", json=code, headers=make_angler("mate_two")["headers"])
        assert resp.status_code == 409
        assert resp.json()["message"] == "Team is full"

    def test_bad_code(self, client, make_angler):
        resp = client.post("/api/teams/join", json={"inviteCode": "NOPE99"}, headers=make_angler()["headers"])
        assert resp.status_code == 404

    def test_non_member_cannot_view(self, client, team, make_angler):
        resp = client.get(f"/api/teams/{team['id']}", headers=make_angler()["headers"])
        assert resp.status_code == 403


class TestLeaveTeam:
    def test_member_leaves_then_captain_deletes(self, client, team, captain, make_angler):
        mate = make_angler("mate_one")
        client.post("/api/teams/join", json={"inviteCode": team["inviteCode"]}, headers=mate["headers"])

        resp = client.delete(f"/api/teams/{team['id']}/leave", headers=captain["headers"])
        assert resp.status_code == 400

        resp = client.delete(f"/api/teams/{team['id']}/leave", headers=mate["headers"])
        assert resp.json()["message"] == "Left team successfully"
        resp = client.delete(f"/api/teams/{team['id']}/leave", headers=captain["headers"])
        assert resp.json()["message"] == "Team deleted successfully"

    def test_captain_removes_member(self, client, team, captain, make_angler):
        mate = make_angler("mate_one")
        member = client.post(
            "/api/teams/join", json={"inviteCode": team["inviteCode"]}, headers=mate["headers"]
        ).json()["member"]

        resp = client.delete(f"/api/teams/{team['id']}/members/{member['id']}", headers=mate["headers"])
        assert resp.status_code == 403
        resp = client.delete(f"/api/teams/{team['id']}/members/{member['id']}", headers=captain["headers"])
        assert resp.json()["message"] == "Member removed successfully"


class TestAdminTeamPeg:
    def test_set_team_peg(self, client, admin, team_competition, team):
        resp = client.put(f"/api/admin/teams/{team['id']}/peg", json={"pegNumber": 3}, headers=admin["headers"])
        assert resp.json()["pegNumber"] == 3
        pegs = client.get(f"/api/competitions/{team_competition['id']}/available-pegs").json()
        assert 3 not in pegs

    def test_unknown_team(self, client, admin):
        resp = client.put("/api/admin/teams/missing/peg", json={"pegNumber": 3}, headers=admin["headers"])
        assert resp.status_code == 404
