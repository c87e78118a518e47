"""
Client package - Async API client and the long-poll message loop.
"""

from edubridge.client.api import ApiError, EduBridgeClient
from edubridge.client.poller import MessagePoller

__all__ = ["ApiError", "EduBridgeClient", "MessagePoller"]
