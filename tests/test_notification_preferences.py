import pytest

from app.importflow.core.error_catalog import AppError, ErrorCatalog
from app.importflow.db.models import NotificationPreference
from app.importflow.services.preferences import PreferenceService, wants_event
from tests.helpers import create_user


def test_resolve_returns_unpersisted_default(db_session):
    user = create_user(db_session)

    preference = PreferenceService(db_session).resolve(user.id)

    assert preference.email_enabled is True
    assert preference.email_frequency == "immediate"
    assert preference.email_address is None
    assert preference.notify_inspection_failed is True
    assert db_session.query(NotificationPreference).count() == 0


def test_update_creates_then_merges(db_session):
    user = create_user(db_session)
    service = PreferenceService(db_session)

    created = service.update(user.id, {"email_frequency": "daily"})
    merged = service.update(user.id, {"notify_arrival": False})

    assert created.id == merged.id
    assert merged.email_frequency == "daily"
    assert merged.notify_arrival is False
    assert merged.notify_delayed is True
    assert db_session.query(NotificationPreference).count() == 1


def test_update_rejects_unknown_fields_and_frequencies(db_session):
    user = create_user(db_session)
    service = PreferenceService(db_session)

    with pytest.raises(AppError) as exc:
        service.update(user.id, {"sms_enabled": True})
    assert exc.value.error == ErrorCatalog.VALIDATION_ERROR

    with pytest.raises(AppError) as exc:
        service.update(user.id, {"email_frequency": "hourly"})
    assert exc.value.error == ErrorCatalog.VALIDATION_ERROR


def test_update_for_unknown_user(db_session):
    with pytest.raises(AppError) as exc:
        PreferenceService(db_session).update("ghost", {"email_enabled": False})

    assert exc.value.error == ErrorCatalog.USER_NOT_FOUND


def test_wants_event_honours_category_flags(db_session):
    user = create_user(db_session)
    preference = PreferenceService(db_session).update(user.id, {"notify_inspection_passed": False})

    assert wants_event(preference, "inspection_failed") is True
    assert wants_event(preference, "inspection_passed") is False
    assert wants_event(preference, "unknown_event") is False


def test_preferences_api_round_trip(client, db_session):
    user = create_user(db_session)

    default = client.get(f"/importflow/notifications/preferences/{user.id}")
    assert default.status_code == 200
    assert default.json()["email_frequency"] == "immediate"

    updated = client.put(
        f"/importflow/notifications/preferences/{user.id}",
        json={"email_frequency": "weekly", "email_address": "ops@example.com"},
    )
    assert updated.status_code == 200
    assert updated.json()["email_frequency"] == "weekly"
    assert updated.json()["email_address"] == "ops@example.com"
    assert updated.json()["notify_arrival"] is True


def test_preferences_api_validation_errors(client, db_session):
    user = create_user(db_session)

    response = client.put(
        f"/importflow/notifications/preferences/{user.id}",
        json={"email_frequency": "monthly"},
    )
    assert response.status_code == 422
    assert response.json()["code"] == "VALIDATION_ERROR"

    response = client.put(
        f"/importflow/notifications/preferences/{user.id}",
        json={"push_enabled": True},
    )
    assert response.status_code == 422
