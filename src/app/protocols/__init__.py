"""Protocolos e contratos do core da aplicação."""

from .appointment_store import AppointmentQuery, AppointmentStoreProtocol
from .authorization import AuthorizationPolicyProtocol
from .provider_store import ProviderStoreProtocol

__all__ = [
    "AppointmentQuery",
    "AppointmentStoreProtocol",
    "AuthorizationPolicyProtocol",
    "ProviderStoreProtocol",
]
