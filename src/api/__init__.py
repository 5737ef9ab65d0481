"""API — camada de borda HTTP.

Responsabilidades:
- Receber requests do host (identidade do ator via headers)
- Validar payloads e traduzir erros do motor para HTTP

NÃO PODE conter: regras de agenda, FSM ou acesso direto a stores.
"""
