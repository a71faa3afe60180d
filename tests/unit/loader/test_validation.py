"""
Unit tests for GLB payload validation.
"""

import struct

import pytest

from tryon_assets.exceptions import AssetValidationError
from tryon_assets.loader.validation import build_glb, validate_glb, validate_payload
from tryon_assets.models.enums import AssetFormat


def test_valid_glb_summary(glb_bytes):
    summary = validate_glb(glb_bytes)

    assert summary.byte_length == len(glb_bytes)
    assert summary.mesh_count == 1
    assert summary.node_count == 1
    assert summary.material_count == 1
    assert summary.generator == "tryon-test"


def test_build_glb_pads_to_four_bytes():
    payload = build_glb({"asset": {"version": "2.0"}}, binary=b"\x01\x02\x03")

    assert len(payload) % 4 == 0
    assert validate_glb(payload).mesh_count == 0


@pytest.mark.parametrize(
    "mutate,reason",
    [
        (lambda p: b"", "empty"),
        (lambda p: p[:10], "too short"),
        (lambda p: b"GLTF" + p[4:], "magic"),
        (lambda p: p[:4] + struct.pack("<I", 1) + p[8:], "version"),
        (lambda p: p + b"\x00\x00\x00\x00", "length"),
        (lambda p: p[:12] + struct.pack("<I", 10_000) + p[16:], "truncated"),
    ],
)
def test_malformed_payloads_rejected(glb_bytes, mutate, reason):
    with pytest.raises(AssetValidationError):
        validate_glb(mutate(glb_bytes))


def test_first_chunk_must_be_json():
    payload = bytearray(build_glb({"asset": {"version": "2.0"}}))
    payload[16:20] = struct.pack("<I", 0x004E4942)

    with pytest.raises(AssetValidationError, match="not JSON"):
        validate_glb(bytes(payload))


def test_unparseable_json_chunk():
    payload = bytearray(build_glb({"asset": {"version": "2.0"}}))
    payload[20] = ord("#")

    with pytest.raises(AssetValidationError, match="not valid JSON"):
        validate_glb(bytes(payload))


def test_validate_payload_dispatch(glb_bytes):
    assert validate_payload(glb_bytes, AssetFormat.GLB).mesh_count == 1
    assert validate_payload(b"", AssetFormat.PROCEDURAL) is None
