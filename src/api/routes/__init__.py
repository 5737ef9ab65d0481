"""Rotas HTTP da API.

Responsabilidades:
- Definir endpoints HTTP (agenda, health)
- Validação inicial de request (headers, query params, body)
- Delegação para o SchedulingService
- Respostas HTTP apropriadas

Estrutura:
- routes/scheduling/: slots, agendamentos e agendas de providers
- routes/health/: health checks e readiness

Agregação:
- router.py: registra todos os routers no app principal
"""

from __future__ import annotations

from api.routes.router import create_api_router

__all__ = ["create_api_router"]
