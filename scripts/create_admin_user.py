"""
Create an ADMIN account directly (no OTP), e.g. for a fresh database.

Run from project root:
  python scripts/create_admin_user.py <email> <password> [name] [phone]

The password must meet the same strength rule as a password reset.
"""
import os
import sys
from datetime import datetime, timezone

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from app.database import SessionLocal, Base, engine
from app.models.user import User, UserRole
from app.services.auth import get_password_hash
from app.services.errors import ValidationError
from app.services.password_reset import validate_password_strength


def main():
    if len(sys.argv) < 3:
        print("Usage: python scripts/create_admin_user.py <email> <password> [name] [phone]")
        sys.exit(1)
    email = sys.argv[1].strip().lower()
    password = sys.argv[2]
    name = (sys.argv[3] if len(sys.argv) > 3 else "Administrator").strip()
    phone = (sys.argv[4] if len(sys.argv) > 4 else "+10000000000").strip()
    try:
        validate_password_strength(password)
    except ValidationError as e:
        print(f"Rejected: {e.message}")
        sys.exit(1)

    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        if db.query(User).filter(User.email == email).first():
            print(f"User already exists: {email}")
            sys.exit(0)
        db.add(User(
            name=name,
            email=email,
            hashed_password=get_password_hash(password),
            phone=phone,
            role=UserRole.ADMIN,
            is_primary=True,
            is_active=True,
            email_verified=True,
            email_verified_at=datetime.now(timezone.utc),
        ))
        db.commit()
        print(f"Created admin: {email}")
    finally:
        db.close()


if __name__ == "__main__":
    main()
