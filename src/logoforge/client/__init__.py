"""Client side of Logoforge: gateway client, image strategies and session."""

from .api_client import GatewayClient, classify_status
from .image_sources import GatewayImageSource, LocalImageSource
from .session import DesignSession, SessionSnapshot, Slot, SlotState

__all__ = [
    "GatewayClient",
    "classify_status",
    "GatewayImageSource",
    "LocalImageSource",
    "DesignSession",
    "SessionSnapshot",
    "Slot",
    "SlotState",
]
