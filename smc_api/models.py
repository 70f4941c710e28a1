"""Modelos de la API de Smart Citizen (solo los campos que usamos)."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import ClassVar, List, Optional

from pydantic import BaseModel, ConfigDict, Field

DEVICE_STATE_ONLINE = 1.0
DEVICE_STATE_OFFLINE = 0.0
DEVICE_STATE_SLEEPING = 0.5
DEVICE_STATE_UNKNOWN = -1.0


class RecordKind(str, Enum):
    """Tipos de registro que los converters saben procesar."""
    DEVICE_DETAIL = "device_detail"
    DEVICE_SENSOR = "device_sensor"


def device_state_value(state: Optional[str]) -> float:
    if state in ("online", "has_published"):
        return DEVICE_STATE_ONLINE
    if state == "offline":
        return DEVICE_STATE_OFFLINE
    if state == "sleeping":
        return DEVICE_STATE_SLEEPING
    return DEVICE_STATE_UNKNOWN


def parse_time_to_unix(value: Optional[str]) -> int:
    """RFC 3339 -> segundos unix; 0 si no se puede parsear."""
    if not value:
        return 0
    try:
        return int(datetime.fromisoformat(value.replace("Z", "+00:00")).timestamp())
    except ValueError:
        return 0


class _ApiModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class Location(_ApiModel):
    city: Optional[str] = None
    country: Optional[str] = None
    country_code: Optional[str] = None


class UserDevice(_ApiModel):
    id: int
    uuid: str = ""
    name: str = ""
    description: Optional[str] = None
    state: Optional[str] = ""
    kit_id: Optional[int] = None
    mac_address: Optional[str] = None

    added_at: Optional[str] = None
    updated_at: Optional[str] = None
    last_reading_at: Optional[str] = None


class User(_ApiModel):
    id: int
    uuid: str = ""
    username: str = ""
    email: Optional[str] = None
    role: Optional[str] = None
    url: Optional[str] = None

    location: Optional[Location] = None
    devices: List[UserDevice] = Field(default_factory=list)


class DeviceLocation(_ApiModel):
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    ip: Optional[str] = None
    exposure: Optional[str] = None
    elevation: Optional[float] = None
    geohash: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    country_code: Optional[str] = None


class DeviceSensor(_ApiModel):
    record_kind: ClassVar[RecordKind] = RecordKind.DEVICE_SENSOR

    id: int
    uuid: str = ""
    name: str
    description: Optional[str] = ""
    unit: Optional[str] = ""
    value: Optional[float] = None

    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    # No viene en el JSON del sensor: lo rellena el exporter con el device padre.
    device_uuid: str = ""

    def to_unix(self) -> int:
        return parse_time_to_unix(self.updated_at)


class DeviceData(_ApiModel):
    firmware: Optional[str] = None
    location: Optional[DeviceLocation] = None
    sensors: List[DeviceSensor] = Field(default_factory=list)
    recorded_at: Optional[str] = None
    added_at: Optional[str] = None


class DeviceDetail(_ApiModel):
    record_kind: ClassVar[RecordKind] = RecordKind.DEVICE_DETAIL

    id: int
    uuid: str = ""
    name: str = ""
    description: Optional[str] = None
    state: Optional[str] = ""
    system_tags: List[str] = Field(default_factory=list)
    user_tags: List[str] = Field(default_factory=list)

    owner: Optional[User] = None
    data: DeviceData = Field(default_factory=DeviceData)

    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    last_reading_at: Optional[str] = None

    @property
    def state_value(self) -> float:
        return device_state_value(self.state)

    @property
    def sensors(self) -> List[DeviceSensor]:
        return self.data.sensors

    def sensors_with_device(self) -> List[DeviceSensor]:
        """Copia de los sensores con device_uuid rellenado."""
        return [
            s if s.device_uuid else s.model_copy(update={"device_uuid": self.uuid})
            for s in self.data.sensors
        ]


class UserDeviceCollection(_ApiModel):
    user: User
    devices: List[DeviceDetail] = Field(default_factory=list)
