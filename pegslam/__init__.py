"""
Peg Slam - fishing competition bookings, peg draws and leaderboards.

The REST API lives in ``pegslam.api``; ``pegslam.client`` talks to it over
HTTP and ``pegslam.cli`` runs the server and admin chores.
"""

from __future__ import annotations

__version__ = "1.0.0"
