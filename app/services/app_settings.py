"""Typed access to the global key-value settings table (email notification toggles).

Every key has a schema default; reads merge stored values over the defaults and
writes are validated as a whole before anything is stored.
"""
from __future__ import annotations

import re
from typing import Any

from sqlalchemy.orm import Session

from app.models.app_setting import AppSetting
from app.services.errors import ValidationError

JOB_NOTIFICATION_FREQUENCY = "job_notification_frequency"
END_OF_DAY_NOTIFICATIONS = "end_of_day_notifications"
END_OF_DAY_TIME = "end_of_day_time"
NOTIFICATION_ENABLED = "email_notifications_enabled"

DEFAULTS: dict[str, Any] = {
    JOB_NOTIFICATION_FREQUENCY: 5,
    END_OF_DAY_NOTIFICATIONS: True,
    END_OF_DAY_TIME: "18:00",
    NOTIFICATION_ENABLED: True,
}

DESCRIPTIONS = {
    JOB_NOTIFICATION_FREQUENCY: "Number of applications per job after which to send notification emails to recruiters",
    END_OF_DAY_NOTIFICATIONS: "Whether to send end-of-day notification emails even if the frequency threshold is not met",
    END_OF_DAY_TIME: "Time of day to send end-of-day notification emails (24-hour format HH:MM)",
    NOTIFICATION_ENABLED: "Whether email notifications to recruiters are enabled globally",
}

_TIME_RE = re.compile(r"^([01]?[0-9]|2[0-3]):[0-5][0-9]$")
_UNSET = object()


def _check_key(key: str) -> None:
    if key not in DEFAULTS:
        raise ValidationError(f"Invalid setting key: {key}")


def validate_setting_value(key: str, value: Any) -> None:
    _check_key(key)
    if key == JOB_NOTIFICATION_FREQUENCY:
        # bool is an int subclass; reject True/False here
        if isinstance(value, bool) or not isinstance(value, int) or not 1 <= value <= 50:
            raise ValidationError("Job notification frequency must be an integer between 1 and 50")
    elif key in (END_OF_DAY_NOTIFICATIONS, NOTIFICATION_ENABLED):
        if not isinstance(value, bool):
            raise ValidationError("Boolean value expected")
    elif key == END_OF_DAY_TIME:
        if not isinstance(value, str) or not _TIME_RE.match(value):
            raise ValidationError("Time must be in HH:MM format (24-hour)")


def get_setting(db: Session, key: str, default: Any = _UNSET) -> Any:
    """Stored value, else the caller's default, else the schema default."""
    _check_key(key)
    row = db.query(AppSetting).filter(AppSetting.key == key).first()
    if row is not None:
        return row.value
    return DEFAULTS[key] if default is _UNSET else default


def get_all_settings(db: Session) -> dict[str, Any]:
    merged = dict(DEFAULTS)
    for row in db.query(AppSetting).filter(AppSetting.key.in_(list(DEFAULTS))).all():
        merged[row.key] = row.value
    return merged


def update_settings(db: Session, values: dict[str, Any], updated_by_id: int | None = None) -> dict[str, Any]:
    if not isinstance(values, dict) or not values:
        raise ValidationError("Settings object is required")
    for key, value in values.items():
        validate_setting_value(key, value)

    existing = {
        row.key: row
        for row in db.query(AppSetting).filter(AppSetting.key.in_(list(values))).all()
    }
    for key, value in values.items():
        row = existing.get(key)
        if row is None:
            db.add(AppSetting(key=key, value=value, description=DESCRIPTIONS[key], updated_by_id=updated_by_id))
        else:
            row.value = value
            row.description = DESCRIPTIONS[key]
            row.updated_by_id = updated_by_id
    db.commit()
    return get_all_settings(db)


def initialize_defaults(db: Session, updated_by_id: int | None = None) -> int:
    """Insert any missing keys with their defaults. Returns how many were created."""
    present = {key for (key,) in db.query(AppSetting.key).filter(AppSetting.key.in_(list(DEFAULTS))).all()}
    missing = [key for key in DEFAULTS if key not in present]
    for key in missing:
        db.add(AppSetting(key=key, value=DEFAULTS[key], description=DESCRIPTIONS[key], updated_by_id=updated_by_id))
    if missing:
        db.commit()
    return len(missing)