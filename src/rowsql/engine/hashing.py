"""Row normalisation and identity tokens.

Rows have no guaranteed primary key, so a row is identified by a short
digest of its values.  All hashing is deterministic: the same value
sequence always produces the same token, and reordering the values
changes it.

Two rows with identical values in identical order share a token.  The
8-hex-character prefix also leaves a small chance that two different rows
collide; callers that resolve a token treat the first match as the row.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any, Iterable

TOKEN_LENGTH = 8


def normalize_value(value: Any) -> Any:
    """Convert driver byte values to ``str``.

    Depending on the driver and column type the same logical value can
    arrive as ``bytes``, ``bytearray``, ``memoryview`` or ``str``; only the
    string form is hashed and cached.
    """
    if isinstance(value, memoryview):
        value = value.tobytes()
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", errors="replace")
    return value


def normalize_row(values: Iterable[Any]) -> list[Any]:
    """Return a new list with every value passed through normalize_value."""
    return [normalize_value(v) for v in values]


def canonical_row(row: list[Any]) -> bytes:
    """Serialize a row to canonical JSON bytes.

    List order is preserved, nested dict keys are sorted, and values JSON
    cannot represent (dates, decimals, ...) are rendered with ``str``.
    """
    return json.dumps(
        row,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=str,
    ).encode("utf-8")


def row_hash(row: list[Any]) -> str:
    """Compute the identity token of a row.

    Byte values are normalised first, so a row read as bytes and the same
    row read as text share a token.

    Returns:
        The first TOKEN_LENGTH hex characters of the SHA-256 digest.
    """
    return hashlib.sha256(canonical_row(normalize_row(row))).hexdigest()[:TOKEN_LENGTH]
