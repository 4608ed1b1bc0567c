"""Core gateway logic: hashing, challenge solving, message merge and translation."""

from inkeep_gateway.core.challenge import ChallengeFetcher, ChallengeSolver, encode_solution
from inkeep_gateway.core.config import Settings, get_settings
from inkeep_gateway.core.hashing import HashAlgorithm, digest
from inkeep_gateway.core.merger import merge_content, merge_messages
from inkeep_gateway.core.transcoder import StreamTranscoder
from inkeep_gateway.core.translator import from_upstream, new_completion_id, to_upstream

__all__ = [
    "ChallengeFetcher",
    "ChallengeSolver",
    "HashAlgorithm",
    "Settings",
    "StreamTranscoder",
    "digest",
    "encode_solution",
    "from_upstream",
    "get_settings",
    "merge_content",
    "merge_messages",
    "new_completion_id",
    "to_upstream",
]
