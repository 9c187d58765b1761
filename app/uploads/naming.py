"""Collision-free names for stored files."""

import re
import secrets
import time
from pathlib import PurePath

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_-]+")
_SUFFIX_SPACE = 10**9


def safe_field_name(field_name: str) -> str:
    """Reduce a client-supplied field name to characters safe in a filename."""
    return _UNSAFE_CHARS.sub("_", field_name).strip("_") or "file"


def generate_filename(original_name: str, field_name: str) -> str:
    """Build ``<field>-<epoch ms>-<random><ext>``, keeping the original extension as sent."""
    extension = PurePath(original_name).suffix
    timestamp = time.time_ns() // 1_000_000
    suffix = secrets.randbelow(_SUFFIX_SPACE)
    return f"{safe_field_name(field_name)}-{timestamp}-{suffix}{extension}"
