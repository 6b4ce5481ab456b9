"""
Command line entrypoint.

Usage:
  pegslam serve --host 0.0.0.0 --port 8000
  pegslam create-staff --email ops@pegslam.co.uk --password ... --first-name Sam --last-name Reed --role admin
  pegslam draw-pegs --competition <id> --random --dry-run
"""

from __future__ import annotations

import argparse
import json
from pathlib import Path

from pegslam.config import get_settings
from pegslam.exceptions import PegSlamError
from pegslam.logging_config import configure_logging
from pegslam.repository import PegSlamRepo
from pegslam.security import hash_password, validate_email, validate_password


def _serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run("pegslam.api:app", host=args.host, port=args.port, reload=args.reload)
    return 0


def _create_staff(args: argparse.Namespace) -> int:
    repo = PegSlamRepo(args.db or get_settings().db_path)
    staff = repo.create_staff(
        {
            "email": validate_email(args.email),
            "password": hash_password(validate_password(args.password)),
            "firstName": args.first_name,
            "lastName": args.last_name,
            "role": args.role,
        }
    )
    print(f"Created {staff['role']} {staff['email']} ({staff['id']})")
    return 0


def _draw_pegs(args: argparse.Namespace) -> int:
    repo = PegSlamRepo(args.db or get_settings().db_path)
    mode = "random" if args.random else "sequential"
    assignments = repo.draw_competition_pegs(args.competition, mode, dry_run=args.dry_run)
    print(json.dumps([a.to_dict() for a in assignments], indent=2))
    if args.dry_run:
        print(f"Dry run: {len(assignments)} pegs would be assigned ({mode})")
    else:
        print(f"Assigned {len(assignments)} pegs ({mode})")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="pegslam", description="Peg Slam API server and admin tools")
    parser.add_argument(
        "--db", type=Path, default=None, help="SQLite database (default: PEGSLAM_DB_PATH or data/pegslam.db)"
    )
    commands = parser.add_subparsers(dest="command", required=True)

    serve = commands.add_parser("serve", help="Run the API server")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    serve.add_argument("--reload", action="store_true")
    serve.set_defaults(handler=_serve)

    staff = commands.add_parser("create-staff", help="Create a staff account directly in the database")
    staff.add_argument("--email", required=True)
    staff.add_argument("--password", required=True)
    staff.add_argument("--first-name", required=True)
    staff.add_argument("--last-name", required=True)
    staff.add_argument("--role", choices=("admin", "manager", "marshal"), default="admin")
    staff.set_defaults(handler=_create_staff)

    draw = commands.add_parser("draw-pegs", help="Assign pegs to every entrant of a competition")
    draw.add_argument("--competition", required=True, help="Competition id")
    draw.add_argument("--random", action="store_true", help="Random draw instead of join order")
    draw.add_argument("--dry-run", action="store_true", help="Show the assignment without saving it")
    draw.set_defaults(handler=_draw_pegs)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(log_format="console")
    try:
        return args.handler(args)
    except PegSlamError as exc:
        print(f"Error: {exc.message}")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
