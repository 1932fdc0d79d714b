"""Tests for the create_user CLI."""

import io
import unittest
from contextlib import redirect_stderr, redirect_stdout
from unittest.mock import patch

from app.core.security import verify_password
from app.models import User
from app.scripts import create_user as cli
from tests.support import make_session_factory


class TestCreateUserCli(unittest.TestCase):
    def setUp(self) -> None:
        self.SessionLocal = make_session_factory()
        patcher = patch.object(cli, "SessionLocal", self.SessionLocal)
        patcher.start()
        self.addCleanup(patcher.stop)

    def _run(self, *argv: str) -> int:
        with redirect_stdout(io.StringIO()), redirect_stderr(io.StringIO()):
            return cli.main(list(argv))

    def test_creates_admin(self) -> None:
        code = self._run("Ana", "Ana@Example.com", "long-enough", "--role", "admin", "--cnpj", "12.345/0001-00")
        self.assertEqual(code, 0)
        db = self.SessionLocal()
        try:
            user = db.query(User).one()
        finally:
            db.close()
        self.assertEqual(user.email, "ana@example.com")
        self.assertEqual(user.role, "admin")
        self.assertEqual(user.cnpj_access, "12345000100")
        self.assertTrue(verify_password("long-enough", user.password_hash))

    def test_rejects_short_password_and_duplicates(self) -> None:
        self.assertEqual(self._run("Ana", "ana@example.com", "short"), 1)
        self.assertEqual(self._run("Ana", "ana@example.com", "long-enough"), 0)
        self.assertEqual(self._run("Ana", "ANA@example.com", "long-enough"), 1)


if __name__ == "__main__":
    unittest.main()
