"""Tests for the admin command line."""

import pytest

from pegslam.cli import build_parser, main
from pegslam.repository import PegSlamRepo
from pegslam.security import verify_password


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "cli.db"


@pytest.fixture
def competition(db_path):
    repo = PegSlamRepo(db_path)
    comp = repo.create_competition(
        {"name": "Winter Slam", "date": "2030-01-12", "time": "08:00", "venue": "Larford Lakes", "pegsTotal": 5}
    )
    for name in ("alf", "bea", "cal"):
        user = repo.create_user(
            {
                "firstName": name.title(),
                "lastName": "Angler",
                "email": f"{name}@example.com",
                "username": name,
                "password": "x",
            }
        )
        repo.join_competition(comp["id"], user["id"])
    return comp


class TestParser:
    def test_command_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_role_choices(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(
                ["create-staff", "--email", "a@b.co", "--password", "p", "--first-name", "A", "--last-name", "B",
                 "--role", "owner"]
            )


class TestCreateStaff:
    def test_creates_hashed_account(self, db_path, capsys):
        code = main(
            [
                "--db", str(db_path),
                "create-staff",
                "--email", "Ops@PegSlam.co.uk",
                "--password", "long-enough",
                "--first-name", "Sam",
                "--last-name", "Reed",
                "--role", "manager",
            ]
        )

        assert code == 0
        assert "Created manager ops@pegslam.co.uk" in capsys.readouterr().out
        staff = PegSlamRepo(db_path).get_staff_by_email("ops@pegslam.co.uk")
        assert staff["role"] == "manager"
        assert staff["password"] != "long-enough"
        assert verify_password("long-enough", staff["password"])

    def test_invalid_email_reports_error(self, db_path, capsys):
        code = main(
            ["--db", str(db_path), "create-staff", "--email", "nope", "--password", "long-enough",
             "--first-name", "Sam", "--last-name", "Reed"]
        )

        assert code == 1
        assert "Error:" in capsys.readouterr().out


class TestDrawPegs:
    def test_dry_run_leaves_pegs_alone(self, db_path, competition, capsys):
        code = main(["--db", str(db_path), "draw-pegs", "--competition", competition["id"], "--dry-run"])

        assert code == 0
        assert "Dry run: 3 pegs would be assigned (sequential)" in capsys.readouterr().out
        participants = PegSlamRepo(db_path).get_competition_participants(competition["id"])
        assert [p["pegNumber"] for p in participants] == [1, 2, 3]

    def test_random_draw_saves_pegs(self, db_path, competition, capsys):
        code = main(["--db", str(db_path), "draw-pegs", "--competition", competition["id"], "--random"])

        assert code == 0
        assert "Assigned 3 pegs (random)" in capsys.readouterr().out
        participants = PegSlamRepo(db_path).get_competition_participants(competition["id"])
        pegs = sorted(p["pegNumber"] for p in participants)
        assert len(set(pegs)) == 3
        assert all(1 <= peg <= 5 for peg in pegs)

    def test_unknown_competition(self, db_path, capsys):
        code = main(["--db", str(db_path), "draw-pegs", "--competition", "missing"])

        assert code == 1
        assert "Error:" in capsys.readouterr().out
