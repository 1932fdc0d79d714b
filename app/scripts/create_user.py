"""
Create a user (e.g. the first admin, since public registration is off in prod). Run from project root:
  python -m app.scripts.create_user NAME EMAIL PASSWORD [--cnpj CNPJ] [--role admin|employee]
Example:
  python -m app.scripts.create_user "Ana Souza" ana@example.com 'your-secure-password' --role admin
"""
import argparse
import sys

from app.core.config import get_settings
from app.core.database import SessionLocal
from app.core.errors import AppError
from app.core.security import hash_password
from app.models import ROLE_EMPLOYEE, ROLES
from app.services.credentials import CredentialStore, normalize_email

PASSWORD_MIN_LEN = 8
PASSWORD_MAX_LEN = 128


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create a proposals API user.")
    parser.add_argument("name", help="Display name")
    parser.add_argument("email", help="Login email (stored lowercase)")
    parser.add_argument("password", help=f"Password ({PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} chars)")
    parser.add_argument("--cnpj", default="", help="Business registration number (access tag)")
    parser.add_argument("--role", default=ROLE_EMPLOYEE, choices=list(ROLES))
    args = parser.parse_args(argv)

    name = args.name.strip()
    email = normalize_email(args.email)
    if not name or not email:
        print("Name and email are required.", file=sys.stderr)
        return 1
    if not (PASSWORD_MIN_LEN <= len(args.password) <= PASSWORD_MAX_LEN):
        print(
            f"Password must be {PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} characters.",
            file=sys.stderr,
        )
        return 1

    settings = get_settings()
    db = SessionLocal()
    try:
        store = CredentialStore(db)
        if store.get_by_email(email) is not None:
            print(f"User '{email}' already exists.", file=sys.stderr)
            return 1
        store.insert(
            name=name,
            email=email,
            cnpj_access=args.cnpj,
            password_hash=hash_password(args.password, settings.BCRYPT_ROUNDS),
            role=args.role,
        )
        print(f"Created user '{email}' with role '{args.role}'.")
        return 0
    except AppError as e:
        print(e.message, file=sys.stderr)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
