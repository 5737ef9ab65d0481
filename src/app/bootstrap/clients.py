"""Factories de clientes externos — Redis e Firestore.

Clientes são singletons por processo; stores recebem o cliente pronto.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import TYPE_CHECKING

from config.settings import get_base_settings, get_firestore_settings

if TYPE_CHECKING:
    from google.cloud.firestore import Client as FirestoreClient
    from redis.asyncio import Redis as AsyncRedis

logger = logging.getLogger(__name__)


# ──────────────────────────────────────────────────────────────────────────────
# Redis Client Factory
# ──────────────────────────────────────────────────────────────────────────────


@lru_cache(maxsize=1)
def create_async_redis_client() -> AsyncRedis[bytes]:
    """Cria cliente Redis assíncrono (singleton).

    Returns:
        Cliente Redis assíncrono

    Raises:
        ValueError: Se REDIS_URL não configurado
    """
    from redis.asyncio import Redis as AsyncRedis

    redis_url = get_base_settings().redis_url
    if not redis_url:
        msg = "REDIS_URL não configurado"
        raise ValueError(msg)

    client: AsyncRedis[bytes] = AsyncRedis.from_url(
        redis_url,
        decode_responses=False,
        socket_timeout=5.0,
        socket_connect_timeout=5.0,
    )

    logger.info("async_redis_client_created")
    return client


# ──────────────────────────────────────────────────────────────────────────────
# Firestore Client Factory
# ──────────────────────────────────────────────────────────────────────────────


@lru_cache(maxsize=1)
def create_firestore_client() -> FirestoreClient:
    """Cria cliente Firestore (singleton).

    Returns:
        Cliente Firestore
    """
    from google.cloud import firestore

    project_id = get_firestore_settings().project_id or get_base_settings().gcp_project or None
    client = firestore.Client(project=project_id)
    logger.info("firestore_client_created", extra={"project": project_id})
    return client
