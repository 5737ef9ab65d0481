"""App — coração do motor: domínio, orquestração e infraestrutura.

Subpastas:
- bootstrap/: composition root (factories, inicialização, wiring)
- domain/: modelos pydantic e erros do motor de agenda
- services/: resolução de disponibilidade, slots, ledger, ciclo de vida
- infra/: stores concretos (memória, Redis, Firestore)
- protocols/: contratos consumidos do host (stores, autorização)
- observability/: correlation_id e métricas como log

Padrão: app executa; api adapta; fsm governa; utils apoia.
"""
