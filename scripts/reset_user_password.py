"""
Set a user's password from the command line and clear any pending reset link.
Usage: python scripts/reset_user_password.py <email> <new_password>
"""
import os
import sys

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from app.database import SessionLocal
from app.models.user import User
from app.services.auth import get_password_hash
from app.services.errors import ValidationError
from app.services.password_reset import validate_password_strength


def main():
    if len(sys.argv) < 3:
        print("Usage: python scripts/reset_user_password.py <email> <new_password>")
        sys.exit(1)
    email = sys.argv[1].strip().lower()
    password = sys.argv[2]
    try:
        validate_password_strength(password)
    except ValidationError as e:
        print(f"Rejected: {e.message}")
        sys.exit(1)

    db = SessionLocal()
    try:
        user = db.query(User).filter(User.email == email).first()
        if not user:
            print(f"No user found with email: {email}")
            sys.exit(1)
        user.hashed_password = get_password_hash(password)
        user.reset_password_token = None
        user.reset_password_expires = None
        db.commit()
        print(f"Password reset for {email} (role={user.role.value}).")
    finally:
        db.close()


if __name__ == "__main__":
    main()
