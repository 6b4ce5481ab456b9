"""
Repository module for data persistence.
"""

from __future__ import annotations

from pathlib import Path

from pegslam.repository.accounts import AccountsMixin
from pegslam.repository.base import SQLiteBase
from pegslam.repository.competitions import CompetitionsMixin
from pegslam.repository.content import ContentMixin


class PegSlamRepo(AccountsMixin, CompetitionsMixin, ContentMixin, SQLiteBase):
    """
    SQLite repository for the whole Peg Slam data model.

    Design goals:
    - Single-file DB (easy deploy + backup)
    - Indexed columns for filtering, full JSON record per row
    - Peg bookings serialised by SQLite write transactions
    """

    def __init__(self, db_path: str | Path = "data/pegslam.db") -> None:
        super().__init__(db_path)


__all__ = ["PegSlamRepo"]
