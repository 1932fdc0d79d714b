"""Settings validation: bounds, blank secrets and defaults."""

import unittest

from pydantic import ValidationError

from tests.support import make_settings


class TestSettingsDefaults(unittest.TestCase):
    def test_auth_defaults(self) -> None:
        settings = make_settings()
        self.assertEqual(settings.JWT_EXPIRE_MINUTES, 7 * 24 * 60)
        self.assertEqual(settings.JWT_ALGORITHM, "HS256")
        self.assertEqual(settings.AUTH_RATE_LIMIT_WINDOW_MS, 900_000)
        self.assertEqual(settings.AUTH_RATE_LIMIT_MAX_ATTEMPTS, 5)
        self.assertEqual(settings.AUTH_RATE_LIMIT_LOCKOUT_BASE_MS, 300_000)
        self.assertEqual(settings.AUTH_RATE_LIMIT_LOCKOUT_MAX_MS, 3_600_000)
        self.assertFalse(settings.is_production)

    def test_blank_secrets_become_none(self) -> None:
        settings = make_settings(JWT_SECRET="", REGISTER_INVITE_TOKEN="  ")
        self.assertIsNone(settings.JWT_SECRET)
        self.assertIsNone(settings.REGISTER_INVITE_TOKEN)

    def test_log_level_is_normalized(self) -> None:
        self.assertEqual(make_settings(LOG_LEVEL="warning").LOG_LEVEL, "WARNING")


class TestSettingsValidation(unittest.TestCase):
    def test_rejects_out_of_range_values(self) -> None:
        invalid = [
            {"BCRYPT_ROUNDS": 3},
            {"BCRYPT_ROUNDS": 32},
            {"JWT_EXPIRE_MINUTES": 0},
            {"AUTH_RATE_LIMIT_MAX_ATTEMPTS": 0},
            {"AUTH_RATE_LIMIT_WINDOW_MS": 0},
            {"DATABASE_URL": "mysql://root@localhost/db"},
            {"LOG_LEVEL": "chatty"},
            {"APP_ENV": "staging"},
        ]
        for overrides in invalid:
            with self.subTest(overrides=overrides):
                with self.assertRaises(ValidationError):
                    make_settings(**overrides)


if __name__ == "__main__":
    unittest.main()
