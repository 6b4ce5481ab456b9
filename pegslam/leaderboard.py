"""
Weigh-in aggregation.

A competitor can record several weigh-ins during a match. The leaderboard
adds them up per angler (or per team in team competitions) and ranks the
totals, heaviest first.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Sequence

from pegslam.weights import OUNCES_PER_POUND, format_total, weight_value


def aggregate_leaderboard(
    entries: Sequence[Mapping[str, Any]],
    key: str = "userId",
) -> list[dict[str, Any]]:
    """
    Group weigh-ins by ``key`` and rank by total weight.

    ``entries`` must be in recording order: the last entry of each group is
    used as the row's base, with ``weight`` replaced by the group total and
    ``position`` set to its 1-based rank.
    """
    groups: dict[Any, dict[str, Any]] = {}
    for entry in entries:
        group_key = entry.get(key)
        group = groups.setdefault(group_key, {"latest": entry, "total": 0.0, "count": 0})
        group["latest"] = entry
        group["total"] += weight_value(entry.get("weight"))
        group["count"] += 1

    rows = []
    for group in groups.values():
        row = dict(group["latest"])
        row["weight"] = format_total(group["total"])
        row["weighInCount"] = group["count"]
        rows.append((group["total"], row))

    # sorted() is stable, so ties keep first-recorded order
    rows.sort(key=lambda item: item[0], reverse=True)
    ranked = []
    for index, (_, row) in enumerate(rows):
        row["position"] = index + 1
        ranked.append(row)
    return ranked


def entries_total(entries: Iterable[Mapping[str, Any]]) -> float:
    return sum(weight_value(entry.get("weight")) for entry in entries)


def _lbs(total_ounces: float) -> str:
    return f"{total_ounces / OUNCES_PER_POUND:.2f} lbs" if total_ounces > 0 else "-"


def angler_stats(
    entries: Sequence[Mapping[str, Any]],
    positions: Iterable[int | None] = (),
    participations: int | None = None,
) -> dict[str, Any]:
    """
    Career statistics for an angler.

    Args:
        entries: The angler's weigh-ins across all competitions.
        positions: Final leaderboard positions, one per competition fished.
        participations: Number of competitions booked, when known.
    """
    finishes = [position for position in positions if position]
    weights = [weight_value(entry.get("weight")) for entry in entries]
    total = sum(weights)

    stats: dict[str, Any] = {
        "wins": sum(1 for position in finishes if position == 1),
        "podiumFinishes": sum(1 for position in finishes if position <= 3),
        "bestCatch": _lbs(max(weights) if weights else 0.0),
        "averageWeight": _lbs(total / len(weights) if weights else 0.0),
        "totalWeight": _lbs(total),
        "totalCompetitions": len(entries),
    }
    if participations is not None:
        stats["totalMatches"] = participations
    return stats
