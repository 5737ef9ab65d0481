"""Rotas HTTP do motor de agendamento.

Estrutura:
- slots.py: consulta de horários livres
- appointments.py: criação, mudança de status, feedback e listagem
- providers.py: hooks do host para agenda semanal e exceções
- router.py: agrega os sub-routers
"""

from __future__ import annotations

from api.routes.scheduling.errors import register_exception_handlers
from api.routes.scheduling.router import router

__all__ = ["register_exception_handlers", "router"]
