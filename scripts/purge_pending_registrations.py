"""
Delete expired pending registrations now instead of waiting for the scheduled sweep.
Run: python scripts/purge_pending_registrations.py (from project root)
"""
import os
import sys

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from app.database import SessionLocal
from app.services.pending_cleanup import purge_expired_pending_registrations


def main():
    db = SessionLocal()
    try:
        deleted = purge_expired_pending_registrations(db)
        print(f"Deleted {deleted} expired pending registration(s).")
    finally:
        db.close()


if __name__ == "__main__":
    main()
