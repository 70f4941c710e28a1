"""Excepciones compartidas por el exporter y el job de alertas."""

from __future__ import annotations


class ConfigurationError(Exception):
    """Configuración inválida o credencial ausente. Fatal al arrancar."""


class ProviderError(Exception):
    """Fallo al consultar la API de Smart Citizen (red, status, JSON)."""


class AuthenticationError(ProviderError):
    """Credenciales rechazadas o sesión inexistente."""


class ConversionError(Exception):
    """Un registro no pudo convertirse en métricas."""


class NotificationError(Exception):
    """El transporte de notificaciones rechazó el mensaje."""
