"""Serviços de aplicação.

Unidades reutilizáveis de orquestração (sem IO direto).
Implementações concretas de IO ficam em app/infra/.
"""

from app.services.authorization import OwnershipAuthorizationPolicy
from app.services.scheduling_service import SchedulingService

__all__ = [
    "OwnershipAuthorizationPolicy",
    "SchedulingService",
]
