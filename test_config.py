"""
Configuration loading tests
"""

import os
import sys

from group_rank.config import load_settings

KEYS = ("DATABASE_PATH", "TEST_MODE", "EPHEMERAL_DB", "MATCH_WRITE_ATTEMPTS", "AUDIT_LOG", "CORS_ORIGINS", "LOG_LEVEL", "PORT")


def _with_env(values: dict, check):
    saved = {k: os.environ.get(k) for k in KEYS}
    try:
        for k in KEYS:
            os.environ.pop(k, None)
        os.environ.update(values)
        check(load_settings(env_file=os.devnull))
    finally:
        for k, v in saved.items():
            if v is None:
                os.environ.pop(k, None)
            else:
                os.environ[k] = v


def test_defaults():
    print("🧪 Testing configuration defaults...")

    def check(s):
        assert s.database_path == "./group_rank.sqlite"
        assert s.audit_log is True
        assert s.match_write_attempts == 3
        assert s.cors_origins == ["*"]
        assert s.port == 8000
        assert s.log_level == "INFO"

    _with_env({}, check)
    print("    ✅ Defaults loaded")


def test_test_mode_and_ephemeral_db():
    def check_test_mode(s):
        assert s.database_path == "./test_group_rank.sqlite"

    _with_env({"TEST_MODE": "1"}, check_test_mode)

    def check(s):
        assert s.database_path.startswith("file:")
        assert "memory" in s.database_path

    _with_env({"EPHEMERAL_DB": "yes", "DATABASE_PATH": "/tmp/ignored.db"}, check)


def test_overrides():
    def check(s):
        assert s.database_path == "/tmp/custom.db"
        assert s.audit_log is False
        assert s.match_write_attempts == 5
        assert s.cors_origins == ["http://localhost:3000", "https://golf.example"]
        assert s.log_level == "DEBUG"

    _with_env(
        {
            "DATABASE_PATH": "/tmp/custom.db",
            "AUDIT_LOG": "0",
            "MATCH_WRITE_ATTEMPTS": "5",
            "CORS_ORIGINS": "http://localhost:3000, https://golf.example",
            "LOG_LEVEL": "debug",
        },
        check,
    )


def test_bad_write_attempts_fall_back():
    print("🧪 Testing invalid MATCH_WRITE_ATTEMPTS...")
    for value in ("lots", "0", "-2"):
        def check(s):
            assert s.match_write_attempts == 3
        _with_env({"MATCH_WRITE_ATTEMPTS": value}, check)
    print("    ✅ Falls back to 3")


if __name__ == "__main__":
    tests = [v for k, v in list(globals().items()) if k.startswith("test_") and callable(v)]
    failed = 0
    for t in tests:
        try:
            t()
        except Exception as e:
            failed += 1
            print(f"❌ {t.__name__} failed: {e}")
    print(f"\n{len(tests) - failed}/{len(tests)} tests passed")
    sys.exit(1 if failed else 0)
