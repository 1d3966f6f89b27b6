"""Ganglia gmetric (3.1+) packet encoding.

A metric is announced with a metadata packet followed by a value packet,
both XDR encoded. Values are sent in string form (``%s``) and typed by
the metadata as ``double``.
"""

from __future__ import annotations

import struct

GMETADATA_FULL = 128
GMETRIC_STRING = 133

SLOPE_BOTH = 3
VALUE_TYPE_DOUBLE = "double"


def _pack_int(value: int) -> bytes:
    return struct.pack(">i", value)


def _pack_uint(value: int) -> bytes:
    return struct.pack(">I", value)


def _pack_string(value: str) -> bytes:
    data = value.encode("utf-8")
    padding = (4 - len(data) % 4) % 4
    return _pack_uint(len(data)) + data + b"\x00" * padding


def encode_metadata(
    host: str,
    name: str,
    units: str,
    group: str = "",
    spoof: bool = False,
    tmax: int = 14400,
    dmax: int = 14400,
) -> bytes:
    extras = []
    if group:
        extras.append(("GROUP", group))
    if spoof:
        extras.append(("SPOOF_HOST", host))
    parts = [
        _pack_int(GMETADATA_FULL),
        _pack_string(host),
        _pack_string(name),
        _pack_int(1 if spoof else 0),
        _pack_string(VALUE_TYPE_DOUBLE),
        _pack_string(name),
        _pack_string(units),
        _pack_uint(SLOPE_BOTH),
        _pack_uint(tmax),
        _pack_uint(dmax),
        _pack_uint(len(extras)),
    ]
    for key, value in extras:
        parts.append(_pack_string(key))
        parts.append(_pack_string(value))
    return b"".join(parts)


def encode_value(host: str, name: str, value: float, spoof: bool = False) -> bytes:
    return b"".join(
        [
            _pack_int(GMETRIC_STRING),
            _pack_string(host),
            _pack_string(name),
            _pack_int(1 if spoof else 0),
            _pack_string("%s"),
            _pack_string(repr(float(value))),
        ]
    )
