from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from pegslam.config import Settings
from pegslam.mailer import Mailer
from pegslam.repository import PegSlamRepo
from pegslam.security import SQLiteRateLimiter


@dataclass
class AppState:
    repo: PegSlamRepo
    mailer: Mailer
    rate_limiter: SQLiteRateLimiter
    settings: Settings
    upload_dir: Path
