"""Holding register addresses of the Nilan CTS700 controller.

Addresses are 0-based as sent on the wire. Each register belongs to one of
the two Modbus slaves of the unit.
"""

from __future__ import annotations

from types import MappingProxyType

SLAVE_1 = 1
SLAVE_4 = 4


# Slave 1: ventilation, room and domestic hot water (DHW)
FAN_SPEED = 20148  # FanSpeed value
VENTILATION_PAUSE = 20100
VENTILATION_MODE = 20120  # 0, 1 or 2
AVERAGE_HUMIDITY = 20164
DESIRED_ROOM_TEMPERATURE = 20260  # C x 10
# 0: room temperature from T3, otherwise from Text
MASTER_TEMPERATURE_SENSOR_SETTING = 20263
TEXT_ROOM_TEMPERATURE = 20280
OUTDOOR_TEMPERATURE = 20282
T3_EXTRACT_AIR_TEMPERATURE = 20286
DHW_PAUSE = 20440
DHW_PAUSE_DURATION = 20441
DHW_SETPOINT = 20460
DHW_TOP_TANK_TEMPERATURE = 20520  # T11
DHW_BOTTOM_TANK_TEMPERATURE = 20522
ACTUAL_HUMIDITY = 21776


# Slave 4: central heating (CH)
CENTRAL_HEATING_PAUSE = 20600
CENTRAL_HEATING_PAUSE_DURATION = 20601
CENTRAL_HEATING_POWER = 20602
SETPOINT_SUPPLY_TEMPERATURE_GEO = 20640
T18_READING_GEO = 20653
SETPOINT_SUPPLY_TEMPERATURE_AIR9 = 20680
T18_READING_AIR9 = 20686
DEVICE_TYPE_GEO = 21839  # holds 8 on GEO models
DEVICE_TYPE_AIR9 = 21899  # holds 9 on AIR9 models


# Slave 1: events, 1 = active
EVENT_OUTDOOR_FILTER_WARNING = 22507
EVENT_EXTRACT_FILTER_WARNING = 22508
EVENT_HEATER_OVERHEAT_ALARM = 22512
EVENT_HEATER_FROST_WARNING = 22514
EVENT_HEATER_FROST_LONG_ALARM = 22515
EVENT_HEATER_FROST_ALARM = 22516
EVENT_FIRE_THERM_ALARM = 22521
EVENT_KLIXON_WARNING = 22578
EVENT_COMPRESSOR_HIGH_PRESSURE_WARNING = 22579

FILTER_WARNING_REGISTERS = (
    EVENT_OUTDOOR_FILTER_WARNING,
    EVENT_EXTRACT_FILTER_WARNING,
)
ALARM_REGISTERS = (
    EVENT_HEATER_OVERHEAT_ALARM,
    EVENT_HEATER_FROST_WARNING,
    EVENT_HEATER_FROST_LONG_ALARM,
    EVENT_HEATER_FROST_ALARM,
    EVENT_FIRE_THERM_ALARM,
    EVENT_KLIXON_WARNING,
    EVENT_COMPRESSOR_HIGH_PRESSURE_WARNING,
)

_SLAVE_1_NAMES = (
    "FAN_SPEED",
    "VENTILATION_PAUSE",
    "VENTILATION_MODE",
    "AVERAGE_HUMIDITY",
    "DESIRED_ROOM_TEMPERATURE",
    "MASTER_TEMPERATURE_SENSOR_SETTING",
    "TEXT_ROOM_TEMPERATURE",
    "OUTDOOR_TEMPERATURE",
    "T3_EXTRACT_AIR_TEMPERATURE",
    "DHW_PAUSE",
    "DHW_PAUSE_DURATION",
    "DHW_SETPOINT",
    "DHW_TOP_TANK_TEMPERATURE",
    "DHW_BOTTOM_TANK_TEMPERATURE",
    "ACTUAL_HUMIDITY",
    "EVENT_OUTDOOR_FILTER_WARNING",
    "EVENT_EXTRACT_FILTER_WARNING",
    "EVENT_HEATER_OVERHEAT_ALARM",
    "EVENT_HEATER_FROST_WARNING",
    "EVENT_HEATER_FROST_LONG_ALARM",
    "EVENT_HEATER_FROST_ALARM",
    "EVENT_FIRE_THERM_ALARM",
    "EVENT_KLIXON_WARNING",
    "EVENT_COMPRESSOR_HIGH_PRESSURE_WARNING",
)
_SLAVE_4_NAMES = (
    "CENTRAL_HEATING_PAUSE",
    "CENTRAL_HEATING_PAUSE_DURATION",
    "CENTRAL_HEATING_POWER",
    "SETPOINT_SUPPLY_TEMPERATURE_GEO",
    "T18_READING_GEO",
    "SETPOINT_SUPPLY_TEMPERATURE_AIR9",
    "T18_READING_AIR9",
    "DEVICE_TYPE_GEO",
    "DEVICE_TYPE_AIR9",
)

CATALOG: "MappingProxyType[str, tuple[int, int]]" = MappingProxyType(
    {
        **{name: (SLAVE_1, globals()[name]) for name in _SLAVE_1_NAMES},
        **{name: (SLAVE_4, globals()[name]) for name in _SLAVE_4_NAMES},
    }
)


def lookup(name: str) -> tuple[int, int]:
    """Return ``(slave_id, address)`` for a register name."""
    return CATALOG[name.upper()]
