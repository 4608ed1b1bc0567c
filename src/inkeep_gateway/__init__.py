"""OpenAI-compatible gateway for the Inkeep chat API.

The gateway accepts OpenAI chat completion requests, solves the
proof-of-work challenge the Inkeep API requires, forwards the translated
request and re-frames the streamed or batched reply.
"""

__version__ = "1.0.0"

__all__ = ["__version__"]
