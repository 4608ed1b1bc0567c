"""Domain exceptions for the Inkeep Gateway.

This module defines pure domain exceptions with no framework dependencies.
Every failure the core can produce while serving one chat completion is
represented here, so the HTTP layer can map them to error envelopes without
knowing which component raised them.

Exception Hierarchy:
    - GatewayError: Base exception for all gateway errors
    - UnsupportedAlgorithmError: Challenge names an unknown hash algorithm
    - ChallengeFetchError: Challenge endpoint unreachable or malformed
    - ChallengeUnsolvableError: No number in range matches the challenge
    - UpstreamCallError: Chat endpoint failed or returned non-success status
    - TranscodeError: Upstream stream failed after the response had begun
    - InvalidRequestError: Caller input failed validation
    - NoTokensAvailableError: Default token pool is empty

Note:
    None of these errors are retried internally. Retries, if desired, are a
    caller-level concern.
"""


class GatewayError(Exception):
    """Base exception for all gateway errors.

    Catching GatewayError catches every failure the core raises, which is
    what the route layer does to produce the ``server_error`` envelope.
    """


class UnsupportedAlgorithmError(GatewayError, ValueError):
    """Raised when a hash algorithm outside sha256/sha384/sha512 is requested."""


class ChallengeFetchError(GatewayError):
    """Raised when the challenge endpoint cannot be reached or returns garbage.

    Common causes:
        - Transport failure (DNS, connect, read timeout)
        - Non-success HTTP status
        - Body is not JSON, or lacks algorithm/challenge/maxnumber/salt
    """


class ChallengeUnsolvableError(GatewayError):
    """Raised when no number in ``[0, maxnumber]`` reproduces the challenge."""


class UpstreamCallError(GatewayError):
    """Raised when the upstream chat endpoint fails.

    Attributes:
        status_code: Upstream HTTP status if a response was received, None
            for transport failures.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class TranscodeError(GatewayError):
    """Raised when reading the upstream stream fails after output has started."""


class InvalidRequestError(GatewayError):
    """Raised when a caller request violates input rules.

    This is the only gateway error attributable to the caller; it maps to an
    ``invalid_request_error`` envelope instead of ``server_error``.
    """


class NoTokensAvailableError(GatewayError):
    """Raised when no bearer token was supplied and the default pool is empty."""
