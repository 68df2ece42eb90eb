"""Quote provider clients."""

from app.clients.twelvedata_rest import TwelveDataClient

__all__ = [
    "TwelveDataClient",
]
