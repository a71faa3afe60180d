"""
Payload validation.

Checks that a downloaded payload is non-empty and parseable as its declared
format before it reaches the renderer. Only the GLB container is inspected:

    Header (12 bytes):  magic "glTF" | uint32 version (2) | uint32 total length
    Chunk 0:            uint32 length | uint32 type "JSON" | UTF-8 JSON
    Chunk 1 (optional): uint32 length | uint32 type "BIN\\0" | binary buffer

Geometry is not decoded.
"""

import json
import struct

from tryon_assets.exceptions import AssetValidationError
from tryon_assets.models.asset_models import MeshSummary
from tryon_assets.models.enums import AssetFormat

GLB_MAGIC = b"glTF"
GLB_VERSION = 2
CHUNK_JSON = 0x4E4F534A
CHUNK_BIN = 0x004E4942

_HEADER = struct.Struct("<4sII")
_CHUNK_HEADER = struct.Struct("<II")


def validate_glb(payload: bytes) -> MeshSummary:
    """
    Validate a binary glTF payload.

    Args:
        payload: Raw file bytes

    Returns:
        MeshSummary with the counts declared in the JSON chunk

    Raises:
        AssetValidationError: Empty, truncated or malformed payload
    """
    if not payload:
        raise AssetValidationError("Asset payload is empty")
    if len(payload) < _HEADER.size + _CHUNK_HEADER.size:
        raise AssetValidationError("Asset payload too short for a GLB header", {"bytes": len(payload)})

    magic, version, declared_length = _HEADER.unpack_from(payload, 0)
    if magic != GLB_MAGIC:
        raise AssetValidationError("Not a GLB file", {"magic": magic.hex()})
    if version != GLB_VERSION:
        raise AssetValidationError(f"Unsupported GLB version {version}", {"version": version})
    if declared_length != len(payload):
        raise AssetValidationError(
            "GLB length does not match payload size",
            {"declared": declared_length, "bytes": len(payload)},
        )

    chunk_length, chunk_type = _CHUNK_HEADER.unpack_from(payload, _HEADER.size)
    if chunk_type != CHUNK_JSON:
        raise AssetValidationError("First GLB chunk is not JSON", {"chunk_type": hex(chunk_type)})

    start = _HEADER.size + _CHUNK_HEADER.size
    end = start + chunk_length
    if end > len(payload):
        raise AssetValidationError("GLB JSON chunk is truncated", {"chunk_length": chunk_length})

    try:
        document = json.loads(payload[start:end].decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise AssetValidationError(f"GLB JSON chunk is not valid JSON: {e}") from e
    if not isinstance(document, dict):
        raise AssetValidationError("GLB JSON chunk is not an object")

    asset_info = document.get("asset") if isinstance(document.get("asset"), dict) else {}
    return MeshSummary(
        byte_length=len(payload),
        mesh_count=len(document.get("meshes") or []),
        node_count=len(document.get("nodes") or []),
        material_count=len(document.get("materials") or []),
        generator=asset_info.get("generator"),
    )


def validate_payload(payload: bytes, asset_format: AssetFormat) -> MeshSummary | None:
    """Validate `payload` as `asset_format`. Procedural assets have no payload."""
    if asset_format == AssetFormat.PROCEDURAL:
        return None
    if asset_format == AssetFormat.GLB:
        return validate_glb(payload)
    raise AssetValidationError(f"No validator for format {asset_format.value}")


def build_glb(document: dict, binary: bytes = b"") -> bytes:
    """
    Assemble a GLB container from a glTF JSON document and optional buffer.

    Used to produce fixtures and minimal placeholder files.
    """
    json_bytes = json.dumps(document, separators=(",", ":")).encode("utf-8")
    json_bytes += b" " * (-len(json_bytes) % 4)
    chunks = _CHUNK_HEADER.pack(len(json_bytes), CHUNK_JSON) + json_bytes
    if binary:
        binary += b"\x00" * (-len(binary) % 4)
        chunks += _CHUNK_HEADER.pack(len(binary), CHUNK_BIN) + binary
    return _HEADER.pack(GLB_MAGIC, GLB_VERSION, _HEADER.size + len(chunks)) + chunks
