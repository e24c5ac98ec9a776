from __future__ import annotations

import hashlib
from pathlib import Path

# Digests the Maven repository layout expects next to every file.
CHECKSUM_ALGORITHMS: tuple[str, ...] = ("md5", "sha1")

_CHUNK_SIZE = 1 << 16


def file_digest(path: Path, algorithm: str) -> str:
    h = hashlib.new(algorithm, usedforsecurity=False)
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(_CHUNK_SIZE), b""):
            h.update(chunk)
    return h.hexdigest()


def checksum_files(path: Path) -> dict[str, str]:
    """Map of checksum suffix (``md5``, ``sha1``) to hex digest for ``path``."""
    return {algo: file_digest(path, algo) for algo in CHECKSUM_ALGORITHMS}
