"""
BOM version numbering.

Two separate rules live here:

* ``next_version`` proposes the version for a brand-new BOM of a product by
  looking at every version that product already has. Only the first two
  dot-separated segments take part ("1.2.9" compares as 1.2).
* ``suggest_copy_version`` pre-fills the copy dialog from one source version by
  bumping its last segment.
"""

from __future__ import annotations

import re
from typing import Any, Iterable

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def _leading_int(token: str | None) -> int | None:
    if token is None:
        return None
    m = _LEADING_INT.match(token)
    return int(m.group(1)) if m else None


def parse_major_minor(version: str) -> tuple[int, int]:
    """Read (major, minor) from a version string.

    Major falls back to 1 and minor to 0 when absent or unreadable; a zero
    major also reads as 1.
    """
    parts = (version or "").split(".")
    major = _leading_int(parts[0]) or 1
    minor = _leading_int(parts[1] if len(parts) > 1 else None) or 0
    return major, minor


def _field(bom: Any, name: str):
    if isinstance(bom, dict):
        return bom.get(name)
    return getattr(bom, name, None)


def next_version(boms: Iterable[Any], product_id: str) -> str:
    """Next free "major.minor" for ``product_id`` given existing BOMs.

    ``boms`` may hold ORM rows or plain dicts with ``product_id``/``version``.
    """
    versions = [parse_major_minor(_field(b, "version") or "") for b in boms if _field(b, "product_id") == product_id]
    if not versions:
        return "1.0"
    major, minor = max(versions)
    return f"{major}.{minor + 1}"


def suggest_copy_version(version: str) -> str:
    parts = version.split(".")
    last = parts[-1]
    if len(parts) > 1 and last.isdecimal():
        parts[-1] = str(int(last) + 1)
        return ".".join(parts)
    return f"{version}.1"


def suggest_copy_name(name: str, new_version: str) -> str:
    return f"{name} ({new_version})"
