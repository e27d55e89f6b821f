"""Data models for the nilan API."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Optional


class DeviceVariant(IntEnum):
    """Hardware variants of the CTS700 controller."""

    AIR9 = 0
    GEO = 1


class FanSpeed(IntEnum):
    """Raw values of the fan speed register."""

    LOW = 101
    NORMAL = 102
    HIGH = 103
    VERY_HIGH = 104


class VentilationMode(IntEnum):
    """Ventilation modes accepted by the ventilation mode register."""

    AUTO = 0
    COOLING = 1
    HEATING = 2


@dataclass(frozen=True)
class Settings:
    """User controllable parameters.

    Temperatures are in tenths of a degree Celsius, e.g. 23.5 C is 235.
    A field left as ``None`` is not written by ``NilanClient.apply_settings``;
    a full read always populates every field.
    """

    fan_speed: Optional[FanSpeed] = None
    desired_room_temperature: Optional[int] = None
    desired_dhw_temperature: Optional[int] = None
    dhw_paused: Optional[bool] = None
    dhw_pause_duration: Optional[int] = None
    central_heating_paused: Optional[bool] = None
    central_heating_pause_duration: Optional[int] = None
    central_heating_on: Optional[bool] = None
    ventilation_mode: Optional[int] = None
    ventilation_paused: Optional[bool] = None
    setpoint_supply_temperature: Optional[int] = None


@dataclass(frozen=True)
class Readings:
    """Sensor values, temperatures in tenths of a degree Celsius."""

    room_temperature: int
    outdoor_temperature: int
    average_humidity: int
    actual_humidity: int
    dhw_tank_top_temperature: int
    dhw_tank_bottom_temperature: int
    supply_flow_temperature: int


@dataclass(frozen=True)
class Errors:
    """Aggregated warning and alarm flags."""

    old_filter_warning: bool
    other_errors: bool
