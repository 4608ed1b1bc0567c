"""Upstream Inkeep API client."""

from inkeep_gateway.client.upstream import CHALLENGE_SOLUTION_HEADER, InkeepClient, UpstreamStream

__all__ = ["CHALLENGE_SOLUTION_HEADER", "InkeepClient", "UpstreamStream"]
