from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # UDP listener
    listen_host: str = "0.0.0.0"
    listen_port: int = 8125
    bind_retries: int = 5

    # Aggregation
    flush_interval_seconds: int = 10
    queue_max_size: int = 10_000  # backpressure threshold for datagram handlers

    # Ganglia
    ganglia_hosts: str = ""  # comma separated; empty -> log flushed values only
    ganglia_port: int = 8649
    ganglia_spoof_host: str = ""
    ganglia_group: str = "statsd"
    sink_timeout_seconds: float = 5.0

    # Health / metrics
    metrics_port: int = 9102  # 0 disables the exporter

    # Logging
    debug: bool = False
    app_log_level: str = "INFO"
    app_log_redaction_patterns: list[str] = [
        "password",
        "token",
        "secret",
        "authorization",
        "cookie",
    ]

    otel_service_name: str = "statsrelay"
    app_environment: str = "production"

    @field_validator("flush_interval_seconds")
    @classmethod
    def _positive_interval(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("flush_interval_seconds must be positive")
        return value

    @property
    def effective_log_level(self) -> str:
        return "DEBUG" if self.debug else self.app_log_level

    @property
    def ganglia_host_list(self) -> list[str]:
        return [h.strip() for h in self.ganglia_hosts.split(",") if h.strip()]
