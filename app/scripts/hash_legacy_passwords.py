"""
Hash legacy plaintext passwords in the users table. Run once after upgrading, from project root:

  python -m app.scripts.hash_legacy_passwords --dry-run
  python -m app.scripts.hash_legacy_passwords

Uses BCRYPT_ROUNDS from the environment. Safe to re-run: rows already hashed are skipped.
"""

import argparse
import logging
import sys

from app.core.config import get_settings
from app.core.database import SessionLocal
from app.services.credentials import CredentialStore
from app.services.password_migration import hash_legacy_passwords

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Rehash legacy plaintext passwords with bcrypt.")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="List affected accounts without writing",
    )
    args = parser.parse_args(argv)

    settings = get_settings()
    db = SessionLocal()
    try:
        report = hash_legacy_passwords(
            CredentialStore(db), settings.BCRYPT_ROUNDS, dry_run=args.dry_run
        )
        for email in report.migrated:
            print(f"{'Would update' if report.dry_run else 'Updated'}: {email}")
        for email in report.skipped_malformed:
            print(f"Skipped (malformed hash): {email}", file=sys.stderr)
        logger.info(
            "Legacy password migration completed: migrated=%s skipped=%s dry_run=%s",
            len(report.migrated),
            len(report.skipped_malformed),
            report.dry_run,
        )
        return 0
    except Exception as e:
        logger.exception("Legacy password migration failed: %s", e)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
