"""Cliente y exporter de la API de Smart Citizen.

Estructura modular:
- models.py: Modelos pydantic de la API y RecordKind
- converters.py: Converters de registros a métricas
- snapshots.py: Métricas para el motor de alertas
- provider.py / transport.py: Cliente REST instrumentado
- exporter.py: Loop de polling
"""

from .credentials import UserCredential, UserCredentialEnvProvider
from .exporter import APIExporter, build_converter
from .models import DeviceDetail, DeviceSensor, RecordKind, User, device_state_value
from .provider import SmartCitizenProvider
from .snapshots import DEVICE_STATE_METRIC_NAME, device_to_metrics

__all__ = [
    "APIExporter",
    "build_converter",
    "DeviceDetail",
    "DeviceSensor",
    "RecordKind",
    "User",
    "device_state_value",
    "SmartCitizenProvider",
    "UserCredential",
    "UserCredentialEnvProvider",
    "DEVICE_STATE_METRIC_NAME",
    "device_to_metrics",
]
