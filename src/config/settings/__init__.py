"""Agregador de settings do agenda_engine.

Re-exporta todas as settings e funções de cada módulo.
Organização por domínio para isolamento de mudanças.
"""

from __future__ import annotations

# Base settings
from config.settings.base import (
    BaseSettings,
    Environment,
    get_base_settings,
)

# Infrastructure settings
from config.settings.infra import (
    FirestoreSettings,
    get_firestore_settings,
)

# Scheduling settings
from config.settings.scheduling import (
    SchedulingSettings,
    StoreBackend,
    get_scheduling_settings,
)

__all__ = [
    # Base
    "BaseSettings",
    "Environment",
    # Infrastructure
    "FirestoreSettings",
    # Scheduling
    "SchedulingSettings",
    "StoreBackend",
    "get_base_settings",
    "get_firestore_settings",
    "get_scheduling_settings",
]
