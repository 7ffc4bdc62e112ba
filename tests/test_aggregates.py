from __future__ import annotations

from types import SimpleNamespace

from app.services.aggregates import active_missions_count, average_rating, count_by, total_amount


def test_count_by_skips_empty_values() -> None:
    rows = [{"department": "Tri"}, {"department": "Tri"}, {"department": None}, {"department": "Collecte"}]
    assert count_by(rows, "department") == {"Tri": 2, "Collecte": 1}


def test_count_by_reads_objects() -> None:
    rows = [SimpleNamespace(status="pending"), SimpleNamespace(status="assigned"), SimpleNamespace(status="pending")]
    assert count_by(rows, "status") == {"pending": 2, "assigned": 1}


def test_average_rating() -> None:
    assert average_rating([]) is None
    assert average_rating([{"rating": 4}, {"rating": 5}, {"rating": 5}]) == 4.67


def test_active_missions_count() -> None:
    missions = [{"status": s} for s in ("assigned", "in_progress", "completed", "pending", "cancelled")]
    assert active_missions_count(missions) == 2


def test_total_amount() -> None:
    assert total_amount([{"amount": 10.1}, {"amount": 20.2}, {"amount": None}]) == 30.3
