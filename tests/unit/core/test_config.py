import pytest
from pydantic import ValidationError
from statsrelay.core.config import Settings
from statsrelay.main import load_settings


class TestSettings:
    """Test configuration settings."""

    def test_default_values(self):
        config = Settings()

        assert config.listen_host == "0.0.0.0"
        assert config.listen_port == 8125
        assert config.flush_interval_seconds == 10
        assert config.queue_max_size == 10_000
        assert config.ganglia_hosts == ""
        assert config.ganglia_port == 8649
        assert config.ganglia_group == "statsd"
        assert config.ganglia_spoof_host == ""
        assert config.debug is False
        assert config.otel_service_name == "statsrelay"
        assert config.app_log_level == "INFO"

    def test_interval_must_be_positive(self):
        with pytest.raises(ValidationError):
            Settings(flush_interval_seconds=0)

    def test_ganglia_host_list_splits_and_trims(self):
        config = Settings(ganglia_hosts=" gmond1 ,gmond2,, ")
        assert config.ganglia_host_list == ["gmond1", "gmond2"]

    def test_debug_forces_debug_level(self):
        assert Settings(debug=True).effective_log_level == "DEBUG"
        assert Settings(app_log_level="WARNING").effective_log_level == "WARNING"

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("LISTEN_PORT", "9125")
        monkeypatch.setenv("GANGLIA_HOSTS", "a,b")
        config = Settings()
        assert config.listen_port == 9125
        assert config.ganglia_host_list == ["a", "b"]


class TestCommandLine:
    def test_flags_override_defaults(self):
        config = load_settings(
            [
                "--listen_port",
                "18125",
                "--flush_interval_seconds",
                "30",
                "--ganglia_hosts",
                "gmond1,gmond2",
                "--ganglia_group",
                "web",
            ]
        )
        assert config.listen_port == 18125
        assert config.flush_interval_seconds == 30
        assert config.ganglia_host_list == ["gmond1", "gmond2"]
        assert config.ganglia_group == "web"

    def test_no_flags_keeps_defaults(self):
        config = load_settings([])
        assert config.listen_port == 8125
