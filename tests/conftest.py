"""
Test environment shared by all suites.
Runs before `app` is imported so the module-level settings and engine use SQLite
and a known JWT secret instead of a real PostgreSQL database.
"""

import os

os.environ["APP_ENV"] = "dev"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["AUTH_RATE_LIMIT_TEST_MODE"] = "false"
os.environ["ALLOW_PUBLIC_REGISTER"] = "false"
os.environ["REGISTER_INVITE_TOKEN"] = ""
