# app/services/aggregates.py
"""Agrégats purs sur des lignes déjà chargées (aucune requête)."""
from __future__ import annotations

from typing import Any, Iterable, Optional

ACTIVE_MISSION_STATUSES = ("assigned", "in_progress")


def _value(row: Any, field: str) -> Any:
    if isinstance(row, dict):
        return row.get(field)
    return getattr(row, field, None)


def count_by(rows: Iterable[Any], field: str) -> dict[str, int]:
    """Histogramme {valeur: nombre}; les valeurs vides sont ignorées."""
    counts: dict[str, int] = {}
    for row in rows:
        key = _value(row, field)
        if key is None or key == "":
            continue
        counts[str(key)] = counts.get(str(key), 0) + 1
    return counts


def average_rating(ratings: Iterable[Any]) -> Optional[float]:
    values = [float(_value(r, "rating")) for r in ratings if _value(r, "rating") is not None]
    if not values:
        return None
    return round(sum(values) / len(values), 2)


def active_missions_count(missions: Iterable[Any]) -> int:
    return sum(1 for m in missions if _value(m, "status") in ACTIVE_MISSION_STATUSES)


def total_amount(rows: Iterable[Any], field: str = "amount") -> float:
    return round(sum(float(_value(r, field) or 0) for r in rows), 2)
