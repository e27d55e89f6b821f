"""High level client for Nilan CTS700 heat pumps."""

from __future__ import annotations

import contextlib
import logging
import os
from typing import Iterable, Iterator, Mapping, Optional

from . import registers as REG
from . import resolver
from .config import Config
from .errors import RegisterValueError, ShortReadError, UnsupportedVentilationModeError
from .models import DeviceVariant, Errors, FanSpeed, Readings, Settings
from .transport import FakeDevice, TCPTransport, Transport, TransportFactory

logger = logging.getLogger(__name__)

VENTILATION_MODES = frozenset({0, 1, 2})

SETTINGS_SLAVE_1 = (
    REG.FAN_SPEED,
    REG.DESIRED_ROOM_TEMPERATURE,
    REG.DHW_SETPOINT,
    REG.DHW_PAUSE,
    REG.DHW_PAUSE_DURATION,
    REG.VENTILATION_MODE,
    REG.VENTILATION_PAUSE,
)
SETTINGS_SLAVE_4 = (
    REG.CENTRAL_HEATING_PAUSE,
    REG.CENTRAL_HEATING_PAUSE_DURATION,
    REG.CENTRAL_HEATING_POWER,
)
READINGS_SLAVE_1 = (
    REG.OUTDOOR_TEMPERATURE,
    REG.AVERAGE_HUMIDITY,
    REG.ACTUAL_HUMIDITY,
    REG.DHW_TOP_TANK_TEMPERATURE,
    REG.DHW_BOTTOM_TANK_TEMPERATURE,
)
ERROR_REGISTERS = REG.FILTER_WARNING_REGISTERS + REG.ALARM_REGISTERS


def to_signed(raw: int) -> int:
    """Interpret a register value as 16-bit two's complement."""
    raw &= 0xFFFF
    return raw - 0x10000 if raw & 0x8000 else raw


def to_register(value: int) -> int:
    """Encode an int as a 16-bit register value, negatives as two's complement."""
    value = int(value)
    if not -0x8000 <= value <= 0xFFFF:
        raise RegisterValueError(f"value {value} does not fit in a 16-bit register")
    return value & 0xFFFF


def _flag(raw: int) -> bool:
    return raw == 1


def _fan_speed(raw: int) -> FanSpeed:
    try:
        return FanSpeed(raw)
    except ValueError:
        raise RegisterValueError(f"unknown fan speed {raw}") from None


def settings_to_writes(settings: Settings) -> tuple[dict[int, int], dict[int, int]]:
    """Translate the fields present in *settings* to register writes.

    Returns the register values for slave 1 and slave 4. The supply flow
    setpoint goes to both the GEO and the AIR9 register, the device ignores
    the one of the other variant.
    """
    slave1: dict[int, int] = {}
    slave4: dict[int, int] = {}

    mode = settings.ventilation_mode
    if mode is not None and (
        isinstance(mode, bool) or not isinstance(mode, int) or mode not in VENTILATION_MODES
    ):
        raise UnsupportedVentilationModeError(
            f"unsupported ventilation mode {mode!r}"
        )

    if settings.fan_speed is not None:
        slave1[REG.FAN_SPEED] = to_register(settings.fan_speed)
    if settings.desired_room_temperature is not None:
        slave1[REG.DESIRED_ROOM_TEMPERATURE] = to_register(settings.desired_room_temperature)
    if settings.desired_dhw_temperature is not None:
        slave1[REG.DHW_SETPOINT] = to_register(settings.desired_dhw_temperature)
    if settings.dhw_paused is not None:
        slave1[REG.DHW_PAUSE] = int(bool(settings.dhw_paused))
    if settings.dhw_pause_duration is not None:
        slave1[REG.DHW_PAUSE_DURATION] = to_register(settings.dhw_pause_duration)
    if settings.ventilation_mode is not None:
        slave1[REG.VENTILATION_MODE] = int(settings.ventilation_mode)
    if settings.ventilation_paused is not None:
        slave1[REG.VENTILATION_PAUSE] = int(bool(settings.ventilation_paused))

    if settings.central_heating_paused is not None:
        slave4[REG.CENTRAL_HEATING_PAUSE] = int(bool(settings.central_heating_paused))
    if settings.central_heating_pause_duration is not None:
        slave4[REG.CENTRAL_HEATING_PAUSE_DURATION] = to_register(
            settings.central_heating_pause_duration
        )
    if settings.central_heating_on is not None:
        slave4[REG.CENTRAL_HEATING_POWER] = int(bool(settings.central_heating_on))
    if settings.setpoint_supply_temperature is not None:
        setpoint = to_register(settings.setpoint_supply_temperature)
        slave4[REG.SETPOINT_SUPPLY_TEMPERATURE_AIR9] = setpoint
        slave4[REG.SETPOINT_SUPPLY_TEMPERATURE_GEO] = setpoint

    return slave1, slave4


class NilanClient:
    """Client providing typed access to a Nilan CTS700 via Modbus TCP.

    Every call opens its own sessions and closes them before returning, so
    a client holds no connection between calls. Variant and sensor source
    are looked up again on each call.
    """

    def __init__(
        self,
        cfg: Optional[Config] = None,
        transport_factory: Optional[TransportFactory] = None,
    ) -> None:
        self.cfg = cfg or Config.from_env()
        if transport_factory is None:
            if os.getenv("NILAN_SIM") or os.getenv("NILAN_FAKE"):
                transport_factory = FakeDevice().session
            else:
                transport_factory = self._tcp_session
        self.transport_factory = transport_factory

    def _tcp_session(self, slave_id: int) -> Transport:
        return TCPTransport(self.cfg, slave_id)

    @contextlib.contextmanager
    def _session(self, slave_id: int) -> Iterator[Transport]:
        transport = self.transport_factory(slave_id)
        try:
            yield transport
        finally:
            transport.close()

    # ---- Low level ----
    @staticmethod
    def _read(transport: Transport, address: int) -> int:
        regs = transport.read_holding_registers(address, 1)
        if len(regs) != 1:
            raise ShortReadError(f"expected 1 register at {address}, got {len(regs)}")
        return int(regs[0])

    def fetch_one(self, slave_id: int, address: int) -> int:
        with self._session(slave_id) as transport:
            return self._read(transport, address)

    def fetch_many(self, slave_id: int, addresses: Iterable[int]) -> dict[int, int]:
        """Read *addresses* one by one in a single session.

        The first failing read raises, values read before it are dropped.
        """
        values: dict[int, int] = {}
        with self._session(slave_id) as transport:
            for address in addresses:
                values[address] = self._read(transport, address)
        logger.debug("slave %s read %s", slave_id, values)
        return values

    def store_many(self, slave_id: int, values: Mapping[int, int]) -> None:
        """Write *values* in insertion order in a single session.

        There is no rollback: a failing write leaves the earlier ones applied.
        """
        if not values:
            return
        with self._session(slave_id) as transport:
            for address, value in values.items():
                transport.write_register(address, int(value))
        logger.debug("slave %s wrote %s", slave_id, dict(values))

    # ---- Resolution ----
    def resolve_variant(self) -> DeviceVariant:
        geo_marker = self.fetch_one(REG.SLAVE_4, REG.DEVICE_TYPE_GEO)
        air9_marker = self.fetch_one(REG.SLAVE_4, REG.DEVICE_TYPE_AIR9)
        variant = resolver.variant_from_markers(geo_marker, air9_marker)
        logger.debug("device variant %s", variant.name)
        return variant

    def room_temperature_register(self) -> int:
        setting = self.fetch_one(REG.SLAVE_1, REG.MASTER_TEMPERATURE_SENSOR_SETTING)
        return resolver.room_temperature_register(setting)

    # ---- High level ----
    def fetch_settings(self) -> Settings:
        setpoint_register = resolver.supply_flow_setpoint_register(self.resolve_variant())

        slave1 = self.fetch_many(REG.SLAVE_1, SETTINGS_SLAVE_1)
        slave4 = self.fetch_many(REG.SLAVE_4, SETTINGS_SLAVE_4 + (setpoint_register,))

        return Settings(
            fan_speed=_fan_speed(slave1[REG.FAN_SPEED]),
            desired_room_temperature=to_signed(slave1[REG.DESIRED_ROOM_TEMPERATURE]),
            desired_dhw_temperature=to_signed(slave1[REG.DHW_SETPOINT]),
            dhw_paused=_flag(slave1[REG.DHW_PAUSE]),
            dhw_pause_duration=to_signed(slave1[REG.DHW_PAUSE_DURATION]),
            central_heating_paused=_flag(slave4[REG.CENTRAL_HEATING_PAUSE]),
            central_heating_pause_duration=to_signed(slave4[REG.CENTRAL_HEATING_PAUSE_DURATION]),
            central_heating_on=_flag(slave4[REG.CENTRAL_HEATING_POWER]),
            ventilation_mode=to_signed(slave1[REG.VENTILATION_MODE]),
            ventilation_paused=_flag(slave1[REG.VENTILATION_PAUSE]),
            setpoint_supply_temperature=to_signed(slave4[setpoint_register]),
        )

    def apply_settings(self, settings: Settings) -> None:
        """Write the fields of *settings* that are not ``None``."""
        logger.info("sending settings (None values are ignored): %s", settings)
        slave1, slave4 = settings_to_writes(settings)
        self.store_many(REG.SLAVE_1, slave1)
        self.store_many(REG.SLAVE_4, slave4)

    def fetch_readings(self) -> Readings:
        room_register = self.room_temperature_register()
        flow_register = resolver.flow_temperature_register(self.resolve_variant())

        slave1 = self.fetch_many(REG.SLAVE_1, (room_register,) + READINGS_SLAVE_1)
        slave4 = self.fetch_many(REG.SLAVE_4, (flow_register,))

        return Readings(
            room_temperature=to_signed(slave1[room_register]),
            outdoor_temperature=to_signed(slave1[REG.OUTDOOR_TEMPERATURE]),
            average_humidity=to_signed(slave1[REG.AVERAGE_HUMIDITY]),
            actual_humidity=to_signed(slave1[REG.ACTUAL_HUMIDITY]),
            dhw_tank_top_temperature=to_signed(slave1[REG.DHW_TOP_TANK_TEMPERATURE]),
            dhw_tank_bottom_temperature=to_signed(slave1[REG.DHW_BOTTOM_TANK_TEMPERATURE]),
            supply_flow_temperature=to_signed(slave4[flow_register]),
        )

    def fetch_errors(self) -> Errors:
        raw = self.fetch_many(REG.SLAVE_1, ERROR_REGISTERS)
        return Errors(
            old_filter_warning=any(_flag(raw[r]) for r in REG.FILTER_WARNING_REGISTERS),
            other_errors=any(_flag(raw[r]) for r in REG.ALARM_REGISTERS),
        )

    def fetch_snapshot(self) -> tuple[Readings, Settings]:
        return self.fetch_readings(), self.fetch_settings()
