# Brokers package

from .upstox import UpstoxOAuthClient

__all__ = [
    'UpstoxOAuthClient',
]
