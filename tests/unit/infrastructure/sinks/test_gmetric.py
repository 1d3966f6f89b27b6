import struct

from statsrelay.infrastructure.sinks.gmetric import (
    GMETADATA_FULL,
    GMETRIC_STRING,
    SLOPE_BOTH,
    encode_metadata,
    encode_value,
)


class XdrReader:
    def __init__(self, data: bytes):
        self.data = data
        self.pos = 0

    def int(self) -> int:
        (value,) = struct.unpack_from(">i", self.data, self.pos)
        self.pos += 4
        return value

    def uint(self) -> int:
        (value,) = struct.unpack_from(">I", self.data, self.pos)
        self.pos += 4
        return value

    def string(self) -> str:
        length = self.uint()
        raw = self.data[self.pos : self.pos + length]
        self.pos += length + (4 - length % 4) % 4
        return raw.decode("utf-8")

    def done(self) -> bool:
        return self.pos == len(self.data)


def test_metadata_packet_layout():
    packet = encode_metadata("relay01", "count_foo", "count", group="statsd")
    r = XdrReader(packet)
    assert r.int() == GMETADATA_FULL
    assert r.string() == "relay01"
    assert r.string() == "count_foo"
    assert r.int() == 0  # not spoofed
    assert r.string() == "double"
    assert r.string() == "count_foo"
    assert r.string() == "count"
    assert r.uint() == SLOPE_BOTH
    assert r.uint() == 14400
    assert r.uint() == 14400
    assert r.uint() == 1
    assert (r.string(), r.string()) == ("GROUP", "statsd")
    assert r.done()


def test_metadata_packet_with_spoof_host():
    packet = encode_metadata(
        "10.0.0.1:web1", "avg_db", "ms", group="", spoof=True, tmax=60, dmax=0
    )
    r = XdrReader(packet)
    r.int()
    assert r.string() == "10.0.0.1:web1"
    r.string()
    assert r.int() == 1
    r.string(), r.string(), r.string()
    r.uint()
    assert (r.uint(), r.uint()) == (60, 0)
    assert r.uint() == 1
    assert (r.string(), r.string()) == ("SPOOF_HOST", "10.0.0.1:web1")
    assert r.done()


def test_value_packet_layout():
    r = XdrReader(encode_value("relay01", "avg_bar", 10.0))
    assert r.int() == GMETRIC_STRING
    assert r.string() == "relay01"
    assert r.string() == "avg_bar"
    assert r.int() == 0
    assert r.string() == "%s"
    assert float(r.string()) == 10.0
    assert r.done()


def test_strings_are_padded_to_four_bytes():
    packet = encode_value("abcde", "n", 1.5)
    assert len(packet) % 4 == 0
