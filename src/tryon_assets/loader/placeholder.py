"""
Procedural placeholder assets.

Built from primitives only, so they need no network and no payload. Sizes
are box extents in scene units; for spheres every axis holds the diameter.
"""

from tryon_assets.models.asset_models import PlaceholderPrimitive
from tryon_assets.models.enums import PlaceholderVariant

SKIN = "#ffdbac"
SHIRT = "#4a90e2"
TROUSERS = "#2c3e50"
SHOES = "#8b4513"
GARMENT = "#b0b7c3"


def _avatar() -> list[PlaceholderPrimitive]:
    return [
        PlaceholderPrimitive(name="head", shape="sphere", position=(0.0, 1.7, 0.0), size=(0.3, 0.3, 0.3), color=SKIN),
        PlaceholderPrimitive(name="torso", shape="box", position=(0.0, 1.2, 0.0), size=(0.4, 0.6, 0.2), color=SHIRT),
        PlaceholderPrimitive(name="left_arm", shape="box", position=(-0.3, 1.3, 0.0), size=(0.1, 0.5, 0.1), color=SKIN),
        PlaceholderPrimitive(name="right_arm", shape="box", position=(0.3, 1.3, 0.0), size=(0.1, 0.5, 0.1), color=SKIN),
        PlaceholderPrimitive(name="left_leg", shape="box", position=(-0.1, 0.5, 0.0), size=(0.15, 0.8, 0.15), color=TROUSERS),
        PlaceholderPrimitive(name="right_leg", shape="box", position=(0.1, 0.5, 0.0), size=(0.15, 0.8, 0.15), color=TROUSERS),
        PlaceholderPrimitive(name="left_foot", shape="box", position=(-0.1, 0.05, 0.1), size=(0.12, 0.05, 0.25), color=SHOES),
        PlaceholderPrimitive(name="right_foot", shape="box", position=(0.1, 0.05, 0.1), size=(0.12, 0.05, 0.25), color=SHOES),
    ]


def _garment() -> list[PlaceholderPrimitive]:
    return [
        PlaceholderPrimitive(name="panel", shape="plane", position=(0.0, 1.2, 0.0), size=(0.5, 0.7, 0.0), color=GARMENT),
    ]


def build_placeholder(variant: PlaceholderVariant = PlaceholderVariant.AVATAR) -> list[PlaceholderPrimitive]:
    """Primitives for the requested placeholder variant."""
    if variant == PlaceholderVariant.GARMENT:
        return _garment()
    return _avatar()
