from __future__ import annotations

from datetime import datetime

from app.importflow.core.error_catalog import AppError, ErrorCatalog
from app.importflow.db.models import NotificationPreference
from app.importflow.repos.preferences import PreferenceRepository
from app.importflow.repos.users import UserRepository

FREQUENCY_IMMEDIATE = "immediate"
FREQUENCY_DAILY = "daily"
FREQUENCY_WEEKLY = "weekly"
EMAIL_FREQUENCIES = (FREQUENCY_IMMEDIATE, FREQUENCY_DAILY, FREQUENCY_WEEKLY)

EVENT_CATEGORY_FLAGS = {
    "shipment_arrival": "notify_arrival",
    "inspection_failed": "notify_inspection_failed",
    "inspection_passed": "notify_inspection_passed",
    "warehouse_capacity": "notify_capacity_warning",
    "delayed_shipment": "notify_delayed",
    "post_arrival_update": "notify_post_arrival_update",
    "workflow_assigned": "notify_workflow_assigned",
}

CATEGORY_FLAGS = tuple(EVENT_CATEGORY_FLAGS.values())
PREFERENCE_FIELDS = frozenset(CATEGORY_FLAGS + ("email_enabled", "email_frequency", "email_address"))


def default_preference(user_id: str) -> NotificationPreference:
    """Synthesized default for users who never saved preferences. Not persisted."""
    preference = NotificationPreference(
        user_id=user_id,
        email_enabled=True,
        email_frequency=FREQUENCY_IMMEDIATE,
        email_address=None,
    )
    for flag in CATEGORY_FLAGS:
        setattr(preference, flag, True)
    return preference


def wants_event(preference: NotificationPreference, event_type: str) -> bool:
    flag = EVENT_CATEGORY_FLAGS.get(event_type)
    if flag is None:
        return False
    return bool(preference.email_enabled) and bool(getattr(preference, flag))


class PreferenceService:
    def __init__(self, db):
        self.db = db
        self.repo = PreferenceRepository(db)
        self.users = UserRepository(db)

    def resolve(self, user_id: str) -> NotificationPreference:
        return self.repo.get_by_user(user_id) or default_preference(user_id)

    def update(self, user_id: str, partial: dict, *, now: datetime | None = None) -> NotificationPreference:
        unknown = sorted(set(partial) - PREFERENCE_FIELDS)
        if unknown:
            raise AppError(ErrorCatalog.VALIDATION_ERROR, details={"unknown_fields": unknown})
        frequency = partial.get("email_frequency")
        if "email_frequency" in partial and frequency not in EMAIL_FREQUENCIES:
            raise AppError(
                ErrorCatalog.VALIDATION_ERROR,
                details={"email_frequency": frequency, "allowed": list(EMAIL_FREQUENCIES)},
            )
        if self.users.get_by_id(user_id) is None:
            raise AppError(ErrorCatalog.USER_NOT_FOUND, details={"user_id": user_id})
        fields = dict(partial)
        fields["updated_at"] = now or datetime.utcnow()
        return self.repo.upsert(user_id, fields)
