"""
Unit tests for the CDK app configuration.
"""

from app import get_configuration


class TestGetConfiguration:
    def test_defaults(self, monkeypatch):
        for name in ("ENVIRONMENT", "NOTIFICATION_EMAIL", "NOTIFY_ON_STATUS"):
            monkeypatch.delenv(name, raising=False)

        config = get_configuration()

        assert config["environment_name"] == "dev"
        assert config["notification_email"] is None
        assert config["notify_on_status"] is None

    def test_notify_on_status_whitespace_trimmed(self, monkeypatch):
        monkeypatch.setenv("NOTIFY_ON_STATUS", "FAILED, STOPPED ,")

        assert get_configuration()["notify_on_status"] == ["FAILED", "STOPPED"]
