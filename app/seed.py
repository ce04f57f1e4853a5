"""Seed default application settings (email notification toggles)."""
import logging
from sqlalchemy.orm import Session
from app.services.app_settings import initialize_defaults

log = logging.getLogger("uvicorn.error")


def seed_app_settings(db: Session) -> None:
    created = initialize_defaults(db)
    if created:
        log.info("Initialized %d default email notification setting(s).", created)
