"""Settings do Firestore.

Configurações para Google Cloud Firestore.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache


@dataclass(frozen=True)
class FirestoreSettings:
    """Configurações do Firestore.

    Attributes:
        project_id: ID do projeto GCP (usa GCP_PROJECT se não definido)
        collection_appointments: Collection de agendamentos
        collection_ledgers: Collection de ledgers por (provider, data)
        collection_providers: Collection de agendas dos providers
    """

    project_id: str = ""
    collection_appointments: str = "appointments"
    collection_ledgers: str = "ledgers"
    collection_providers: str = "providers"

    def validate(self, gcp_project: str) -> list[str]:
        """Valida configurações do Firestore.

        Args:
            gcp_project: Projeto GCP padrão para fallback.

        Returns:
            Lista de erros de validação.
        """
        errors: list[str] = []
        effective_project = self.project_id or gcp_project

        if not effective_project:
            errors.append(
                "FIRESTORE_PROJECT_ID ou GCP_PROJECT deve estar configurado"
            )

        collections = (
            self.collection_appointments,
            self.collection_ledgers,
            self.collection_providers,
        )
        if len(set(collections)) != len(collections):
            errors.append("Collections do Firestore devem ser distintas")

        return errors


def _load_firestore_from_env() -> FirestoreSettings:
    """Carrega FirestoreSettings de variáveis de ambiente."""
    return FirestoreSettings(
        project_id=os.getenv("FIRESTORE_PROJECT_ID", ""),
        collection_appointments=os.getenv("FIRESTORE_COLLECTION_APPOINTMENTS", "appointments"),
        collection_ledgers=os.getenv("FIRESTORE_COLLECTION_LEDGERS", "ledgers"),
        collection_providers=os.getenv("FIRESTORE_COLLECTION_PROVIDERS", "providers"),
    )


@lru_cache(maxsize=1)
def get_firestore_settings() -> FirestoreSettings:
    """Retorna instância cacheada de FirestoreSettings."""
    return _load_firestore_from_env()
