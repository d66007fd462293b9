"""Create or reactivate an administrator account.

Self-registration only issues student and faculty accounts, so the first
administrator comes from here.

Run:
  ADMIN_PASSWORD=... PYTHONPATH=backend python scripts/create_admin.py admin@example.edu --name "Registrar"
"""

from __future__ import annotations

import argparse
import os

from sqlalchemy import select

from coursegrid.core.config import get_settings
from coursegrid.core.logging import setup_logging
from coursegrid.core.security import get_password_hash
from coursegrid.db.bootstrap import ensure_runtime_schema_compatibility
from coursegrid.db.session import SessionLocal
from coursegrid.models.user import User, UserRole

MIN_PASSWORD_LENGTH = 8


def _upsert_admin(*, name: str, email: str, password: str) -> User:
    with SessionLocal() as session:
        existing = session.execute(select(User).where(User.email == email)).scalar_one_or_none()
        if existing is None:
            existing = User(
                name=name,
                email=email,
                hashed_password=get_password_hash(password),
                role=UserRole.admin,
                department="Administration",
                is_active=True,
            )
            session.add(existing)
        else:
            existing.name = name
            existing.role = UserRole.admin
            existing.hashed_password = get_password_hash(password)
            existing.is_active = True
        session.commit()
        session.refresh(existing)
        return existing


def main() -> int:
    parser = argparse.ArgumentParser(description="Create or reactivate an administrator account.")
    parser.add_argument("email", help="login email of the administrator")
    parser.add_argument("--name", default="Administrator", help="display name")
    parser.add_argument("--password", default=os.getenv("ADMIN_PASSWORD", ""), help="defaults to $ADMIN_PASSWORD")
    args = parser.parse_args()

    if len(args.password) < MIN_PASSWORD_LENGTH:
        parser.error(f"password must be at least {MIN_PASSWORD_LENGTH} characters (use --password or ADMIN_PASSWORD)")

    settings = get_settings()
    setup_logging(environment=settings.environment, level=settings.log_level)
    ensure_runtime_schema_compatibility()

    admin = _upsert_admin(name=args.name.strip(), email=args.email.strip().lower(), password=args.password)
    print(f"Administrator {admin.email} ready (id={admin.id})")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
