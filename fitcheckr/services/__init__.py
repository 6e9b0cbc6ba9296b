"""Services for the FitCheckr try-on pipeline."""

from .cancellation import CancellationToken
from .gemini_client import GeminiProvider, ImageProvider
from .ingestion import ImageIngestor
from .orchestrator import TryOnOrchestrator
from .relay import TryOnRelay
from .subscriptions import SubscriptionResult, SubscriptionService
from .tryon_client import TryOnClient, TryOnResponse

__all__ = [
    "CancellationToken",
    "GeminiProvider",
    "ImageProvider",
    "ImageIngestor",
    "TryOnOrchestrator",
    "TryOnRelay",
    "SubscriptionResult",
    "SubscriptionService",
    "TryOnClient",
    "TryOnResponse",
]
