from __future__ import annotations

import math

import pytest

from contracts.jsoncanon import jcs_dump, jcs_sha256


def test_canonical_order_and_numbers():
    payload_a = {"b": 2, "a": 1.0}
    payload_b = {"a": 1, "b": 2}
    assert jcs_dump(payload_a) == jcs_dump(payload_b)
    assert jcs_sha256(payload_a) == jcs_sha256(payload_b)
    assert jcs_sha256(payload_a).startswith("sha256-")


def test_compact_separators_and_unicode():
    assert jcs_dump({"vials": [{"segments": ["rosé", 1]}]}) == '{"vials":[{"segments":["rosé",1]}]}'.encode("utf-8")


def test_negative_zero_and_fractions():
    assert jcs_dump({"x": -0.0, "y": 4.6}) == b'{"x":0,"y":4.6}'


def test_rejects_nan():
    with pytest.raises(ValueError):
        jcs_dump({"value": math.nan})


def test_rejects_unsupported_types():
    with pytest.raises(TypeError):
        jcs_dump({"value": {1, 2}})
