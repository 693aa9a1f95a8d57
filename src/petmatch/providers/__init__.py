"""External provider clients."""

from petmatch.providers.embedding import EmbeddingClient
from petmatch.providers.verification import VerificationClient, VerificationVerdict, parse_verdict

__all__ = ["EmbeddingClient", "VerificationClient", "VerificationVerdict", "parse_verdict"]
