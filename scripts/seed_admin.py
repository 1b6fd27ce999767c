"""
Create the first admin account

Reads ADMIN_NAME, ADMIN_PASSWORD and optionally ADMIN_EMAIL from the environment (or .env).
Does nothing when a user with that name already exists.
"""
import sys
import os

# Add parent directory to path to import backend modules
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.auth import hash_password
from core.config import logger
from core.database import SessionLocal, init_db
from models.user import User, Role


def seed_admin(name: str, password: str, email: str = None) -> User:
    init_db()
    db = SessionLocal()
    try:
        existing = db.query(User).filter(User.name == name).first()
        if existing:
            logger.info(f"User '{name}' already exists ({existing.role}), skipping")
            return existing

        admin = User(name=name, email=email or None, password_hash=hash_password(password), role=Role.ADMIN.value)
        db.add(admin)
        db.commit()
        db.refresh(admin)
        logger.info(f"Admin '{name}' created with id {admin.id}")
        return admin
    finally:
        db.close()


def main():
    name = (os.getenv("ADMIN_NAME") or "admin").strip()
    password = os.getenv("ADMIN_PASSWORD") or ""
    email = (os.getenv("ADMIN_EMAIL") or "").strip()

    if len(password) < 6:
        print("✗ ADMIN_PASSWORD must be set and at least 6 characters")
        sys.exit(1)

    seed_admin(name, password, email)
    print(f"✓ Admin '{name}' is ready")


if __name__ == "__main__":
    main()
