"""One-time migration of legacy plaintext passwords to bcrypt.

The login path rejects any stored value that is not a bcrypt hash. Rows created
before hashing was introduced still hold the plaintext password; this job hashes
that value in place so those users can log in again with the same password.
"""

import logging
from dataclasses import dataclass, field

from app.core.security import hash_password
from app.services.credentials import CredentialStore

logger = logging.getLogger(__name__)


@dataclass
class MigrationReport:
    migrated: list[str] = field(default_factory=list)
    skipped_malformed: list[str] = field(default_factory=list)
    dry_run: bool = False


def hash_legacy_passwords(
    store: CredentialStore, rounds: int, dry_run: bool = False
) -> MigrationReport:
    """
    Rehash every row whose password_hash has no bcrypt prefix. Commits once at the end.

    Rows that carry a bcrypt prefix but a wrong length are reported and left alone:
    they are corrupted hashes, not plaintext. Idempotent: a second run finds nothing.
    """
    report = MigrationReport(dry_run=dry_run)
    for user in store.list_malformed_hash_users():
        logger.warning(
            "Skipping malformed bcrypt hash; reset this password manually",
            extra={"user_id": user.id},
        )
        report.skipped_malformed.append(user.email)

    legacy_users = store.list_legacy_password_users()
    if not legacy_users:
        logger.info("No legacy passwords found.")
        return report

    logger.info("Hashing %s legacy password(s).", len(legacy_users))
    for user in legacy_users:
        report.migrated.append(user.email)
        if dry_run:
            continue
        store.update_password(user, hash_password(user.password_hash, rounds), commit=False)
        logger.info("Password migrated", extra={"user_id": user.id})

    if not dry_run:
        store.commit()
    return report
