"""I/O utility functions for file and directory operations."""

import json
import os
import re
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any


def slugify(text: str) -> str:
    """
    Convert text to a filesystem-safe slug.

    Args:
        text: Input text to slugify.

    Returns:
        Filesystem-safe slug string.
    """
    # Convert to lowercase
    text = text.lower()
    # Replace spaces and special characters with hyphens
    text = re.sub(r"[^\w\s-]", "", text)
    text = re.sub(r"[-\s]+", "-", text)
    # Remove leading/trailing hyphens
    text = text.strip("-")
    # Limit length
    if len(text) > 100:
        text = text[:100].rstrip("-")
    return text


def new_project_id(channel_id: str) -> str:
    """
    Create a unique project identifier for a generation job.

    Args:
        channel_id: Channel the project belongs to

    Returns:
        Identifier like 'human-odyssey-20250101-120000-1a2b3c'
    """
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    return f"{slugify(channel_id)}-{timestamp}-{uuid.uuid4().hex[:6]}"


def atomic_write_json(path: Path, payload: Any) -> None:
    """
    Write JSON through a temp file and os.replace so readers never see a partial file.

    Args:
        path: Destination file
        payload: JSON-serializable data
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(f".{path.name}.{uuid.uuid4().hex[:8]}.tmp")
    try:
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2, ensure_ascii=False)
        os.replace(tmp_path, path)
    finally:
        if tmp_path.exists():
            tmp_path.unlink()


def remove_quietly(path: Path) -> bool:
    """
    Delete a file if it exists.

    Returns:
        True if a file was removed
    """
    try:
        path.unlink()
        return True
    except FileNotFoundError:
        return False
