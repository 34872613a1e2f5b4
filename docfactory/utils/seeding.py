"""Deterministic per-job random streams."""

import hashlib
import random


def stable_seed(*parts: str) -> int:
    """
    Derive a stable 32-bit seed from job-identifying strings.

    The digest does not depend on PYTHONHASHSEED, so the same inputs give the
    same seed in every process.

    Args:
        *parts: Identifying strings (channel id, topic, script title)

    Returns:
        Unsigned 32-bit seed
    """
    key = ":".join(parts)
    digest = hashlib.sha256(key.encode("utf-8")).digest()
    return int.from_bytes(digest[:4], "big")


def seeded_rng(seed: int) -> random.Random:
    """Create a fresh generator for one job. Never share it across jobs."""
    return random.Random(seed)
