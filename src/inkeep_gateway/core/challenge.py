"""Proof-of-work challenge solver.

The upstream chat API only accepts requests carrying a solution to a fresh
challenge: find the integer ``n`` in ``[0, maxnumber]`` such that
``hash(salt + str(n)) == challenge``. The solver fetches a challenge, searches
the range, and encodes the answer as the opaque token the upstream expects.

Search Strategy:
    - The range is scanned in ascending batches (default 1000 numbers)
    - Each batch is split across worker threads and hashed concurrently
    - The next batch starts only after the current one is fully checked, and
      the smallest match inside a batch wins, so the result equals what a
      linear scan would return
    - Every number is hashed at most once

Concurrency:
    Hashing runs in threads via ``asyncio.to_thread`` so the event loop keeps
    serving other requests while a challenge is being solved.
"""

from __future__ import annotations

import asyncio
import base64
import json
import logging
import time
from typing import Protocol

from inkeep_gateway.core.hashing import DigestFunc, HashAlgorithm, digest
from inkeep_gateway.domain.entities import ChallengeDescriptor
from inkeep_gateway.domain.exceptions import ChallengeUnsolvableError

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 1000
DEFAULT_WORKERS = 4


class ChallengeFetcher(Protocol):
    """Anything that can retrieve a fresh challenge descriptor."""

    async def fetch_challenge(self) -> ChallengeDescriptor: ...


def encode_solution(descriptor: ChallengeDescriptor, number: int) -> str:
    """Encode a solved challenge as the upstream's solution token.

    The token is base64 over the UTF-8 bytes of compact JSON, with ``number``
    first and the descriptor fields after it in the order they were received.
    """
    payload = descriptor.solution_payload(number)
    raw = json.dumps(payload, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
    return base64.b64encode(raw).decode("ascii")


class ChallengeSolver:
    """Fetches and solves upstream proof-of-work challenges.

    Attributes:
        batch_size: Numbers checked per batch.
        workers: Threads used to hash one batch.
    """

    __slots__ = ("_digest", "_fetcher", "batch_size", "workers")

    def __init__(
        self,
        fetcher: ChallengeFetcher,
        *,
        batch_size: int = DEFAULT_BATCH_SIZE,
        workers: int = DEFAULT_WORKERS,
        digest_func: DigestFunc = digest,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        if workers < 1:
            raise ValueError("workers must be at least 1")
        self._fetcher = fetcher
        self._digest = digest_func
        self.batch_size = batch_size
        self.workers = workers

    async def fetch_and_solve(self) -> str:
        """Fetch a fresh challenge, solve it, and return the solution token.

        Raises:
            ChallengeFetchError: If the challenge could not be retrieved.
            UnsupportedAlgorithmError: If the challenge names an unknown hash.
            ChallengeUnsolvableError: If no number in range matches.
        """
        descriptor = await self._fetcher.fetch_challenge()
        start_time = time.perf_counter()
        number = await self.solve(descriptor)
        elapsed_ms = (time.perf_counter() - start_time) * 1000
        logger.info(
            "challenge_solved: algorithm=%s, maxnumber=%s, number=%s, elapsed_ms=%.1f",
            descriptor.algorithm,
            descriptor.maxnumber,
            number,
            elapsed_ms,
        )
        return encode_solution(descriptor, number)

    async def solve(self, descriptor: ChallengeDescriptor) -> int:
        """Return the smallest number in range whose salted digest matches.

        Raises:
            UnsupportedAlgorithmError: If the descriptor's algorithm is unknown.
            ChallengeUnsolvableError: If the challenge is not a digest of the
                algorithm's width, or no number in ``[0, maxnumber]`` matches.
        """
        algorithm = HashAlgorithm.parse(descriptor.algorithm)
        target = descriptor.challenge.strip().lower()
        if len(target) != algorithm.hex_width:
            raise ChallengeUnsolvableError(
                f"Challenge is not a {algorithm.value} digest: expected "
                f"{algorithm.hex_width} hex characters, got {len(target)}"
            )
        salt = descriptor.salt.encode("utf-8")

        for start in range(0, descriptor.maxnumber + 1, self.batch_size):
            end = min(start + self.batch_size - 1, descriptor.maxnumber)
            found = await self._scan_batch(algorithm.value, salt, target, start, end)
            if found is not None:
                return found

        raise ChallengeUnsolvableError(
            f"No number in [0, {descriptor.maxnumber}] matches the challenge"
        )

    async def _scan_batch(
        self, algorithm: str, salt: bytes, target: str, start: int, end: int
    ) -> int | None:
        """Hash ``[start, end]`` across worker threads; smallest match wins."""
        span = end - start + 1
        step = -(-span // self.workers)
        slices = [(lo, min(lo + step - 1, end)) for lo in range(start, end + 1, step)]
        results = await asyncio.gather(
            *(
                asyncio.to_thread(self._scan_range, algorithm, salt, target, lo, hi)
                for lo, hi in slices
            )
        )
        matches = [n for n in results if n is not None]
        return min(matches) if matches else None

    def _scan_range(
        self, algorithm: str, salt: bytes, target: str, lo: int, hi: int
    ) -> int | None:
        for number in range(lo, hi + 1):
            if self._digest(algorithm, salt + str(number).encode("ascii")) == target:
                return number
        return None


__all__ = [
    "DEFAULT_BATCH_SIZE",
    "DEFAULT_WORKERS",
    "ChallengeFetcher",
    "ChallengeSolver",
    "encode_solution",
]
