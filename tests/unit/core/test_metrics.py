import pytest
from prometheus_client import REGISTRY
from statsrelay.core.metrics import FLUSH_LATENCY_BUCKETS, _qualified
from statsrelay.metrics import FLUSH_LATENCY_SECONDS


def test_names_are_namespaced_once():
    assert _qualified("flushes_total") == "statsrelay_flushes_total"
    assert _qualified("statsrelay_flushes_total") == "statsrelay_flushes_total"


def test_invalid_name_rejected():
    with pytest.raises(ValueError):
        _qualified("Flush-Latency")


def test_flush_latency_uses_relay_buckets():
    FLUSH_LATENCY_SECONDS.observe(0.002)
    for bound in FLUSH_LATENCY_BUCKETS:
        assert (
            REGISTRY.get_sample_value(
                "statsrelay_flush_latency_seconds_bucket", {"le": str(bound)}
            )
            is not None
        )
