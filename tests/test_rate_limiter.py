"""Unit tests for app.services.rate_limiter: windows, exponential lockout, union blocking and test mode."""

import threading
import unittest

from app.core.errors import RateLimitedError
from app.services.rate_limiter import (
    AuthRateLimiter,
    InMemoryRateLimitStore,
    RateLimitConfig,
    client_ip,
    rate_limit_keys,
)
from tests.support import FakeClock, make_settings

BASE = 300.0
MAX = 3600.0


def _limiter(clock: FakeClock, **overrides: object) -> AuthRateLimiter:
    values = {
        "window_seconds": 900.0,
        "max_attempts": 5,
        "lockout_base_seconds": BASE,
        "lockout_max_seconds": MAX,
    }
    values.update(overrides)
    return AuthRateLimiter(RateLimitConfig(**values), clock=clock)


class TestKeyDerivation(unittest.TestCase):
    def test_client_ip(self) -> None:
        self.assertEqual(client_ip("1.2.3.4, 10.0.0.1", "127.0.0.1"), "1.2.3.4")
        self.assertEqual(client_ip(None, "5.6.7.8"), "5.6.7.8")
        self.assertEqual(client_ip(" , 9.9.9.9", "5.6.7.8"), "5.6.7.8")
        self.assertEqual(client_ip(None, None), "unknown")

    def test_rate_limit_keys(self) -> None:
        keys = rate_limit_keys("1.2.3.4", "a@b.com")
        self.assertEqual(keys.ip_key, "ip:1.2.3.4")
        self.assertEqual(keys.user_key, "user:a@b.com")
        self.assertIsNone(rate_limit_keys("1.2.3.4", "").user_key)


class TestConfigFromSettings(unittest.TestCase):
    def test_milliseconds_become_seconds(self) -> None:
        config = RateLimitConfig.from_settings(make_settings())
        self.assertEqual(config.window_seconds, 900)
        self.assertEqual(config.max_attempts, 5)
        self.assertEqual(config.lockout_base_seconds, 300)
        self.assertEqual(config.lockout_max_seconds, 3600)
        self.assertFalse(config.test_mode)


class TestLockout(unittest.TestCase):
    def setUp(self) -> None:
        self.clock = FakeClock()
        self.limiter = _limiter(self.clock)
        self.keys = rate_limit_keys("1.2.3.4", "a@b.com")

    def _fail(self, times: int, keys=None) -> None:
        for _ in range(times):
            self.limiter.register_failure(keys or self.keys, "invalid_credentials")

    def _retry_after(self, keys=None) -> int:
        with self.assertRaises(RateLimitedError) as ctx:
            self.limiter.check(keys or self.keys)
        return ctx.exception.retry_after_seconds

    def test_below_max_attempts_is_not_locked(self) -> None:
        self._fail(4)
        self.limiter.check(self.keys)
        self.assertEqual(self.limiter.user_store.get("user:a@b.com").count, 4)

    def test_fifth_failure_locks_for_base(self) -> None:
        self._fail(5)
        self.assertEqual(self._retry_after(), 300)
        entry = self.limiter.user_store.get("user:a@b.com")
        self.assertEqual(entry.count, 0)
        self.assertEqual(entry.lockout_level, 1)
        self.assertEqual(entry.lockout_until, self.clock.now + BASE)

    def test_backoff_doubles_and_caps(self) -> None:
        limiter = _limiter(self.clock, lockout_max_seconds=1000.0)
        expected = [300, 600, 1000, 1000]
        for duration in expected:
            for _ in range(5):
                limiter.register_failure(self.keys, "invalid_credentials")
            with self.assertRaises(RateLimitedError) as ctx:
                limiter.check(self.keys)
            self.assertEqual(ctx.exception.retry_after_seconds, duration)
            self.clock.advance(duration + 1)
            limiter.check(self.keys)

    def test_lockout_expires(self) -> None:
        self._fail(5)
        self.clock.advance(299)
        self.assertEqual(self._retry_after(), 1)
        self.clock.advance(1)
        self.limiter.check(self.keys)

    def test_window_expiry_resets_count(self) -> None:
        self._fail(4)
        self.clock.advance(901)
        self._fail(1)
        entry = self.limiter.user_store.get("user:a@b.com")
        self.assertEqual(entry.count, 1)
        self.assertIsNone(entry.lockout_until)
        self.limiter.check(self.keys)

    def test_success_deletes_entries_including_level(self) -> None:
        self._fail(5)
        self.clock.advance(BASE + 1)
        self.limiter.register_success(self.keys)
        self.assertIsNone(self.limiter.ip_store.get("ip:1.2.3.4"))
        self.assertIsNone(self.limiter.user_store.get("user:a@b.com"))
        self._fail(5)
        self.assertEqual(self._retry_after(), 300)

    def test_success_then_failure_starts_fresh(self) -> None:
        self._fail(3)
        self.limiter.register_success(self.keys)
        self._fail(1)
        self.assertEqual(self.limiter.user_store.get("user:a@b.com").count, 1)
        self.assertEqual(self.limiter.ip_store.get("ip:1.2.3.4").count, 1)

    def test_locked_ip_blocks_every_account(self) -> None:
        for i in range(5):
            self._fail(1, rate_limit_keys("1.2.3.4", f"user{i}@b.com"))
        self._retry_after(rate_limit_keys("1.2.3.4", "someone-else@b.com"))
        self._retry_after(rate_limit_keys("1.2.3.4", ""))
        self.limiter.check(rate_limit_keys("4.3.2.1", "user0@b.com"))

    def test_locked_account_blocks_every_ip(self) -> None:
        for i in range(5):
            self._fail(1, rate_limit_keys(f"10.0.0.{i}", "a@b.com"))
        self._retry_after(rate_limit_keys("203.0.113.7", "a@b.com"))
        self.limiter.check(rate_limit_keys("203.0.113.7", "b@b.com"))

    def test_failure_without_email_only_counts_ip(self) -> None:
        self._fail(1, rate_limit_keys("1.2.3.4", ""))
        self.assertEqual(len(self.limiter.user_store), 0)
        self.assertEqual(self.limiter.ip_store.get("ip:1.2.3.4").count, 1)

    def test_metrics(self) -> None:
        self.limiter.record_attempt()
        self._fail(5)
        self._retry_after()
        self.limiter.register_success(rate_limit_keys("9.9.9.9", "z@b.com"))
        metrics = self.limiter.metrics_snapshot()
        self.assertEqual(metrics["attempts"], 1)
        self.assertEqual(metrics["failures"], 5)
        self.assertEqual(metrics["blocked"], 1)
        self.assertEqual(metrics["successes"], 1)
        # One lockout per dimension (IP and account).
        self.assertEqual(metrics["lockouts"], 2)


class TestTestMode(unittest.TestCase):
    def test_never_blocks_and_clears_state(self) -> None:
        clock = FakeClock()
        limiter = _limiter(clock, test_mode=True)
        keys = rate_limit_keys("1.2.3.4", "a@b.com")
        for _ in range(10):
            limiter.register_failure(keys, "invalid_credentials")
        limiter.check(keys)
        self.assertIsNone(limiter.ip_store.get(keys.ip_key))
        self.assertIsNone(limiter.user_store.get(keys.user_key))
        self.assertFalse(limiter.is_locked(keys))

    def test_from_settings_defaults_to_enforcing(self) -> None:
        limiter = AuthRateLimiter.from_settings(make_settings())
        self.assertFalse(limiter.config.test_mode)


class TestConcurrency(unittest.TestCase):
    def test_parallel_failures_are_all_counted(self) -> None:
        limiter = _limiter(FakeClock(), max_attempts=1000)
        keys = rate_limit_keys("1.2.3.4", "a@b.com")
        threads = [
            threading.Thread(target=limiter.register_failure, args=(keys, "invalid_credentials"))
            for _ in range(50)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        self.assertEqual(limiter.user_store.get("user:a@b.com").count, 50)
        self.assertEqual(limiter.metrics_snapshot()["failures"], 50)


class TestInMemoryStore(unittest.TestCase):
    def test_delete_missing_key_is_noop(self) -> None:
        store = InMemoryRateLimitStore()
        store.delete("ip:nowhere")
        self.assertEqual(len(store), 0)


if __name__ == "__main__":
    unittest.main()
