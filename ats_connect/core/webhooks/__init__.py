"""
Inbound webhook handling.
"""

from .ingestor import WebhookBatchResult, WebhookIngestor, WebhookResult, get_webhook_ingestor

__all__ = [
    "WebhookBatchResult",
    "WebhookIngestor",
    "WebhookResult",
    "get_webhook_ingestor",
]
