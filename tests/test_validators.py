from __future__ import annotations

from datetime import date

from app.modules.missions.validators import validate_comment, validate_mission, validate_mission_update
from app.modules.payments.validators import validate_payment
from app.modules.staff.validators import DEFAULT_AVAILABILITY, validate_rating, validate_staff, with_staff_defaults
from app.modules.users.validators import validate_user

MISSION = {"title": "t", "client_id": "c", "location": "l", "service_type": "urgence"}


def test_mission_create_collects_all_missing_fields() -> None:
    result = validate_mission({})
    assert not result.is_valid
    assert result.errors == [
        "title est requis",
        "client_id est requis",
        "location est requis",
        "service_type est requis",
    ]


def test_mission_create_normalizes_values() -> None:
    result = validate_mission({
        "title": "  Collecte  ",
        "client_id": "c1",
        "location": "Paris",
        "service_type": "dechets_speciaux",
        "scheduled_date": "2024-06-01",
        "scheduled_time": "08:30",
        "estimated_duration": "45",
        "equipment_needed": ["benne", " gants ", ""],
        "role": "admin",
    })
    assert result.is_valid, result.errors
    assert result.data["title"] == "Collecte"
    assert result.data["scheduled_date"] == date(2024, 6, 1)
    assert result.data["estimated_duration"] == 45
    assert result.data["equipment_needed"] == ["benne", "gants"]
    assert "role" not in result.data


def test_mission_create_ignores_status() -> None:
    result = validate_mission({**MISSION, "status": "completed"})
    assert result.is_valid
    assert "status" not in result.data


def test_mission_partial_checks_only_sent_fields() -> None:
    assert validate_mission({"title": "Nouveau"}, partial=True).data == {"title": "Nouveau"}

    result = validate_mission({"title": "", "status": "done", "scheduled_time": "25:00"}, partial=True)
    assert result.errors == [
        "scheduled_time doit être au format HH:MM",
        "title doit être une valeur non vide si fournie",
        "status doit être: pending, assigned, in_progress, completed, cancelled",
    ]


def test_mission_partial_allows_unassigning() -> None:
    assert validate_mission({"assigned_staff_id": None}, partial=True).data == {"assigned_staff_id": None}


def test_mission_rejects_negative_duration_and_bad_date() -> None:
    result = validate_mission({"estimated_duration": -5, "scheduled_date": "01/06/2024"}, partial=True)
    assert "estimated_duration doit être supérieur ou égal à 0" in result.errors
    assert "scheduled_date doit être une date au format AAAA-MM-JJ" in result.errors


def test_dates_with_trailing_garbage_are_rejected() -> None:
    result = validate_mission({"scheduled_date": "2024-01-01garbage"}, partial=True)
    assert result.errors == ["scheduled_date doit être une date au format AAAA-MM-JJ"]


def test_non_finite_numbers_are_errors_not_crashes() -> None:
    inf = float("inf")
    result = validate_mission({**MISSION, "estimated_duration": inf})
    assert result.errors == ["estimated_duration doit être un nombre fini"]

    assert not validate_mission({**MISSION, "estimated_duration": "1e400"}).is_valid
    assert validate_rating({"mission_id": "m", "rating": inf}).errors == ["rating doit être un nombre fini"]
    result = validate_payment({"mission_id": "m", "amount": float("nan"), "payment_method": "cash"})
    assert result.errors == ["amount doit être un nombre fini"]


def test_non_object_payload() -> None:
    assert validate_mission(["x"]).errors == ["Le corps de la requête doit être un objet JSON"]


def test_comment_and_update_content_required() -> None:
    assert validate_comment({"content": "   "}).errors == ["content est requis"]
    result = validate_mission_update({"content": "ok", "update_type": "selfie"})
    assert result.errors == ["update_type doit être: status_change, note, photo, issue"]


def test_staff_rules() -> None:
    result = validate_staff({"first_name": "A", "last_name": "B", "position": "C", "hourly_rate": 0,
                             "emergency_contact": {"name": "Mme B", "phone": "06"}})
    assert result.is_valid
    assert result.data["hourly_rate"] == 0
    assert result.data["emergency_contact"] == {"name": "Mme B", "phone": "06"}

    result = validate_staff({"skills": "grue", "availability": {"monday": "oui"}}, partial=True)
    assert result.errors == [
        "skills doit être une liste",
        "availability.monday doit être un booléen",
    ]


def test_staff_partial_keeps_only_sent_days() -> None:
    result = validate_staff({"availability": {"saturday": True}}, partial=True)
    assert result.data == {"availability": {"saturday": True}}
    assert DEFAULT_AVAILABILITY["monday"] is True
    assert DEFAULT_AVAILABILITY["sunday"] is False


def test_new_staff_defaults_fill_nulls_and_missing_days() -> None:
    values = with_staff_defaults({"status": None, "availability": {"saturday": True}})
    assert values["status"] == "active"
    assert values["skills"] == [] and values["certifications"] == []
    assert values["availability"]["saturday"] is True
    assert values["availability"]["monday"] is True
    assert values["availability"]["sunday"] is False


def test_rating_bounds() -> None:
    assert validate_rating({"mission_id": "m", "rating": 5}).is_valid
    assert validate_rating({"mission_id": "m", "rating": 0}).errors == ["rating doit être supérieur ou égal à 1"]
    assert validate_rating({"mission_id": "m", "rating": 6}).errors == ["rating doit être inférieur ou égal à 5"]
    assert validate_rating({"mission_id": "m", "rating": 4.5}).errors == ["rating doit être un entier"]
    assert validate_rating({"rating": 3}).errors == ["mission_id est requis"]


def test_user_rules() -> None:
    result = validate_user({"email": "A@B.fr", "password": "secret", "full_name": "A", "role": "client"})
    assert result.is_valid
    assert result.data["email"] == "a@b.fr"

    result = validate_user({"full_name": "X", "role": "admin", "email": "e@x.fr", "password": "p"}, partial=True)
    assert result.data == {"full_name": "X", "role": "admin"}

    assert validate_user({}, partial=True).errors == ["Données manquantes pour la mise à jour (full_name, role)"]


def test_password_is_not_stripped() -> None:
    result = validate_user({"email": "a@b.fr", "password": " secret ", "full_name": "A", "role": "staff"})
    assert result.data["password"] == " secret "


def test_payment_rules() -> None:
    result = validate_payment({"mission_id": "m", "amount": -1, "payment_method": "bitcoin", "currency": "EURO"})
    assert result.errors == [
        "currency ne doit pas dépasser 3 caractères",
        "payment_method doit être: stripe, paypal, bank_transfer, cash",
        "amount doit être supérieur à 0",
    ]

    result = validate_payment({"mission_id": "m", "amount": "12.5", "payment_method": "cash", "currency": "eur"})
    assert result.data == {"mission_id": "m", "amount": 12.5, "payment_method": "cash", "currency": "EUR"}

    result = validate_payment({"payment_status": "completed", "mission_id": "other"}, partial=True)
    assert result.data == {"payment_status": "completed"}
