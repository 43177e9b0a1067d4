"""
Webhook ingress: signature verification, decoding and dispatch.
"""

from hookwarden.webhooks.dispatcher import WebhookDispatcher, handle_event
from hookwarden.webhooks.router import create_router
from hookwarden.webhooks.signature import verify_signature

__all__ = [
    "WebhookDispatcher",
    "create_router",
    "handle_event",
    "verify_signature",
]
