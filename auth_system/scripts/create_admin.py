"""
Create the first admin account. Run from project root:
  python -m auth_system.scripts.create_admin NAME EMAIL PASSWORD
or set ADMIN_NAME, ADMIN_EMAIL and ADMIN_PASSWORD and run without arguments.
Does nothing if an admin already exists.
"""
import argparse
import sys

from pydantic import ValidationError

from auth_system.core.config import get_settings
from auth_system.core.database import SessionLocal
from auth_system.core.roles import Role
from auth_system.core.security import hash_password
from auth_system.models.user import User
from auth_system.schemas.auth import RegisterRequest


def main(argv: list[str] | None = None) -> int:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Create the bootstrap admin user.")
    parser.add_argument("name", nargs="?", default=settings.ADMIN_NAME, help="Display name")
    parser.add_argument("email", nargs="?", default=settings.ADMIN_EMAIL, help="Admin email")
    parser.add_argument(
        "password",
        nargs="?",
        default=settings.ADMIN_PASSWORD.get_secret_value() if settings.ADMIN_PASSWORD else None,
        help="Password (8-128 chars, letters and digits)",
    )
    args = parser.parse_args(argv)

    if not args.name or not args.email or not args.password:
        print("Admin credentials not provided (arguments or ADMIN_* settings).", file=sys.stderr)
        return 1
    try:
        # Same field rules as self-service registration.
        data = RegisterRequest(name=args.name, email=args.email, password=args.password)
    except ValidationError as e:
        for err in e.errors():
            print(f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}", file=sys.stderr)
        return 1

    db = SessionLocal()
    try:
        if db.query(User).filter(User.role == Role.ADMIN.value).first() is not None:
            print("Admin user already exists.")
            return 0
        if db.query(User).filter(User.email == data.email).first() is not None:
            print(f"User '{data.email}' already exists.", file=sys.stderr)
            return 1
        user = User(
            name=data.name,
            email=data.email,
            password_hash=hash_password(data.password, rounds=settings.BCRYPT_ROUNDS),
            role=Role.ADMIN.value,
            email_verified=True,
        )
        db.add(user)
        db.commit()
        print(f"Created admin '{data.email}'.")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
