"""Exceções utilitárias compartilhadas."""

from .exceptions import (
    FirestoreUnavailableError,
    InfrastructureError,
    RedisConnectionError,
    StorageTimeoutError,
)

__all__ = [
    "FirestoreUnavailableError",
    "InfrastructureError",
    "RedisConnectionError",
    "StorageTimeoutError",
]
