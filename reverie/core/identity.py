"""Deterministic conversation identifiers."""

from __future__ import annotations

import uuid

# Fixed namespace so identifiers survive process restarts
REVERIE_NAMESPACE = uuid.UUID("5b0c9a4e-3f1d-5c7a-9e2b-6d8f0a1c2e3b")

# Platform reserved for the autonomous loop's singleton self-conversation
CONSCIOUSNESS_PLATFORM = "consciousness"
CONSCIOUSNESS_SENTINEL_ID = "main"


def normalize_platform_id(platform: str, platform_local_id: str) -> str:
    """Collapse every local id of the reserved platform onto the sentinel."""

    if platform == CONSCIOUSNESS_PLATFORM:
        return CONSCIOUSNESS_SENTINEL_ID
    return platform_local_id


def derive_conversation_id(platform: str, platform_local_id: str) -> str:
    """Return the stable conversation id for ``(platform, platform_local_id)``.

    The platform and local id are joined with a length prefix so that
    ``("a:b", "c")`` and ``("a", "b:c")`` cannot collide.
    """

    platform = str(platform)
    local_id = normalize_platform_id(platform, str(platform_local_id))
    name = f"{len(platform)}:{platform}:{local_id}"
    return str(uuid.uuid5(REVERIE_NAMESPACE, name))


def self_conversation_id() -> str:
    """Identifier of the consciousness loop's self-conversation."""

    return derive_conversation_id(CONSCIOUSNESS_PLATFORM, CONSCIOUSNESS_SENTINEL_ID)


__all__ = [
    "CONSCIOUSNESS_PLATFORM",
    "CONSCIOUSNESS_SENTINEL_ID",
    "derive_conversation_id",
    "normalize_platform_id",
    "self_conversation_id",
]
