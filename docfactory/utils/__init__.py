"""Utility functions for the Documentary Factory."""

from docfactory.utils.io_utils import atomic_write_json, new_project_id, slugify
from docfactory.utils.seeding import seeded_rng, stable_seed
from docfactory.utils.text_utils import normalize_whitespace, word_count

__all__ = [
    "atomic_write_json",
    "new_project_id",
    "slugify",
    "seeded_rng",
    "stable_seed",
    "normalize_whitespace",
    "word_count",
]
