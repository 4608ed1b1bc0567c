"""Keyed digest primitive used by the challenge solver."""

from __future__ import annotations

import hashlib
from collections.abc import Callable
from enum import StrEnum
from typing import TypeAlias

from inkeep_gateway.domain.exceptions import UnsupportedAlgorithmError


class HashAlgorithm(StrEnum):
    """Digest algorithms the upstream may request."""

    SHA256 = "sha256"
    SHA384 = "sha384"
    SHA512 = "sha512"

    @classmethod
    def parse(cls, name: str) -> HashAlgorithm:
        """Parse ``sha256``/``SHA-256`` style names.

        Raises:
            UnsupportedAlgorithmError: For any other name.
        """
        key = name.strip().lower().replace("-", "") if isinstance(name, str) else name
        try:
            return cls(key)
        except ValueError as exc:
            raise UnsupportedAlgorithmError(f"Unsupported hash algorithm: {name!r}") from exc

    @property
    def hex_width(self) -> int:
        return {"sha256": 64, "sha384": 96, "sha512": 128}[self.value]


DigestFunc: TypeAlias = Callable[[str, bytes], str]


def digest(algorithm: str, data: bytes) -> str:
    """Return the lowercase hex digest of ``data``.

    Pure and safe for concurrent use from any number of threads.

    Raises:
        UnsupportedAlgorithmError: If ``algorithm`` is not sha256/384/512.
    """
    algo = HashAlgorithm.parse(algorithm)
    return hashlib.new(algo.value, data).hexdigest()


__all__ = ["DigestFunc", "HashAlgorithm", "digest"]
