"""
Resilient 3D asset loading.

Components:
- ResilientAssetLoader: resolve a candidate chain, falling back to a placeholder
- AssetFetcher: http(s)/local payload download
- AssetCache: byte-budgeted in-memory payload cache
- AssetRenderer / HeadlessRenderer: renderer capability seam
- validate_glb / validate_payload: GLB container checks
- build_placeholder: procedural avatar and garment primitives
"""

from tryon_assets.loader.asset_loader import (
    ResilientAssetLoader,
    build_candidate_chain,
    reset_candidates,
)
from tryon_assets.loader.cache import AssetCache
from tryon_assets.loader.fetcher import AssetFetcher
from tryon_assets.loader.placeholder import build_placeholder
from tryon_assets.loader.renderer import AssetRenderer, HeadlessRenderer
from tryon_assets.loader.validation import build_glb, validate_glb, validate_payload

__all__ = [
    "AssetCache",
    "AssetFetcher",
    "AssetRenderer",
    "HeadlessRenderer",
    "ResilientAssetLoader",
    "build_candidate_chain",
    "build_glb",
    "build_placeholder",
    "reset_candidates",
    "validate_glb",
    "validate_payload",
]
