from __future__ import annotations

import pytest

from nilan import registers as REG
from nilan.client import NilanClient, settings_to_writes, to_register, to_signed
from nilan.config import Config
from nilan.errors import (
    AmbiguousVariantError,
    RegisterValueError,
    ShortReadError,
    TimeoutError,
    UnsupportedVentilationModeError,
)
from nilan.models import DeviceVariant, Errors, FanSpeed, Settings, VentilationMode
from nilan.transport import Transport


class FakeDevice:
    def __init__(self, geo_marker: int = 8, air9_marker: int = 0) -> None:
        self.regs: dict[tuple[int, int], int] = {
            (REG.SLAVE_4, REG.DEVICE_TYPE_GEO): geo_marker,
            (REG.SLAVE_4, REG.DEVICE_TYPE_AIR9): air9_marker,
            (REG.SLAVE_1, REG.FAN_SPEED): int(FanSpeed.NORMAL),
        }
        self.reads: list[tuple[int, int]] = []
        self.writes: list[tuple[int, int, int]] = []
        self.failing: set[tuple[int, int]] = set()
        self.opened = 0
        self.closed = 0

    def session(self, slave_id: int) -> "FakeTransport":
        self.opened += 1
        return FakeTransport(self, slave_id)


class FakeTransport(Transport):
    def __init__(self, device: FakeDevice, slave_id: int) -> None:
        self.device = device
        self.slave_id = slave_id

    def read_holding_registers(self, address: int, count: int) -> list[int]:
        if (self.slave_id, address) in self.device.failing:
            raise TimeoutError("boom")
        self.device.reads.append((self.slave_id, address))
        return [self.device.regs.get((self.slave_id, address + i), 0) for i in range(count)]

    def write_register(self, address: int, value: int) -> None:
        if (self.slave_id, address) in self.device.failing:
            raise TimeoutError("boom")
        self.device.writes.append((self.slave_id, address, value))
        self.device.regs[(self.slave_id, address)] = value

    def close(self) -> None:
        self.device.closed += 1


@pytest.fixture
def device() -> FakeDevice:
    return FakeDevice()


@pytest.fixture
def client(device: FakeDevice) -> NilanClient:
    return NilanClient(Config(), transport_factory=device.session)


def test_to_signed_handles_negative_temperatures() -> None:
    assert to_signed(235) == 235
    assert to_signed(0xFFFF) == -1
    assert to_signed(0xFF9C) == -100
    assert to_signed(0x8000) == -32768
    assert to_signed(0x7FFF) == 32767


def test_to_register_encodes_two_complement() -> None:
    assert to_register(-100) == 0xFF9C
    assert to_register(235) == 235
    with pytest.raises(RegisterValueError):
        to_register(0x10000)
    with pytest.raises(RegisterValueError):
        to_register(-0x8001)


@pytest.mark.parametrize(
    "geo, air9, expected",
    [(8, 0, DeviceVariant.GEO), (8, 9, DeviceVariant.GEO), (0, 9, DeviceVariant.AIR9)],
)
def test_resolve_variant(geo: int, air9: int, expected: DeviceVariant) -> None:
    device = FakeDevice(geo_marker=geo, air9_marker=air9)
    client = NilanClient(Config(), transport_factory=device.session)
    assert client.resolve_variant() == expected
    assert device.reads == [(4, REG.DEVICE_TYPE_GEO), (4, REG.DEVICE_TYPE_AIR9)]
    assert device.opened == device.closed == 2


def test_resolve_variant_ambiguous() -> None:
    device = FakeDevice(geo_marker=9, air9_marker=8)
    client = NilanClient(Config(), transport_factory=device.session)
    with pytest.raises(AmbiguousVariantError):
        client.resolve_variant()


def test_resolve_variant_transport_error_propagates(device: FakeDevice, client: NilanClient) -> None:
    device.failing.add((4, REG.DEVICE_TYPE_GEO))
    with pytest.raises(TimeoutError):
        client.resolve_variant()
    assert device.reads == []


def test_fetch_many_reads_in_order(device: FakeDevice, client: NilanClient) -> None:
    device.regs[(1, 10)] = 1
    device.regs[(1, 11)] = 2
    assert client.fetch_many(1, [11, 10]) == {11: 2, 10: 1}
    assert device.reads == [(1, 11), (1, 10)]
    assert device.opened == device.closed == 1


def test_fetch_many_failure_on_second_register(device: FakeDevice, client: NilanClient) -> None:
    device.failing.add((1, 11))
    result = None
    with pytest.raises(TimeoutError):
        result = client.fetch_many(1, [10, 11, 12])
    assert result is None
    assert device.reads == [(1, 10)]
    assert device.closed == 1


def test_short_read_raises() -> None:
    class EmptyTransport(Transport):
        closed = False

        def read_holding_registers(self, address: int, count: int) -> list[int]:
            return []

        def close(self) -> None:
            EmptyTransport.closed = True

    client = NilanClient(Config(), transport_factory=lambda slave_id: EmptyTransport())
    with pytest.raises(ShortReadError):
        client.fetch_one(1, REG.FAN_SPEED)
    assert EmptyTransport.closed


def test_store_many_keeps_prior_writes(device: FakeDevice, client: NilanClient) -> None:
    device.failing.add((1, 11))
    with pytest.raises(TimeoutError):
        client.store_many(1, {10: 5, 11: 6, 12: 7})
    assert device.writes == [(1, 10, 5)]
    assert device.closed == 1


def test_store_many_empty_opens_no_session(device: FakeDevice, client: NilanClient) -> None:
    client.store_many(4, {})
    assert device.opened == 0


def test_fetch_settings_geo(device: FakeDevice, client: NilanClient) -> None:
    device.regs.update(
        {
            (1, REG.FAN_SPEED): 103,
            (1, REG.DESIRED_ROOM_TEMPERATURE): 235,
            (1, REG.DHW_SETPOINT): 500,
            (1, REG.DHW_PAUSE): 1,
            (1, REG.DHW_PAUSE_DURATION): 3,
            (1, REG.VENTILATION_MODE): 2,
            (1, REG.VENTILATION_PAUSE): 0,
            (4, REG.CENTRAL_HEATING_PAUSE): 0,
            (4, REG.CENTRAL_HEATING_PAUSE_DURATION): 7,
            (4, REG.CENTRAL_HEATING_POWER): 1,
            (4, REG.SETPOINT_SUPPLY_TEMPERATURE_GEO): 280,
            (4, REG.SETPOINT_SUPPLY_TEMPERATURE_AIR9): 999,
        }
    )
    assert client.fetch_settings() == Settings(
        fan_speed=FanSpeed.HIGH,
        desired_room_temperature=235,
        desired_dhw_temperature=500,
        dhw_paused=True,
        dhw_pause_duration=3,
        central_heating_paused=False,
        central_heating_pause_duration=7,
        central_heating_on=True,
        ventilation_mode=2,
        ventilation_paused=False,
        setpoint_supply_temperature=280,
    )
    assert (4, REG.SETPOINT_SUPPLY_TEMPERATURE_AIR9) not in device.reads
    assert device.opened == device.closed == 4


def test_fetch_settings_air9_uses_air9_setpoint() -> None:
    device = FakeDevice(geo_marker=0, air9_marker=9)
    device.regs[(4, REG.SETPOINT_SUPPLY_TEMPERATURE_AIR9)] = 310
    client = NilanClient(Config(), transport_factory=device.session)
    assert client.fetch_settings().setpoint_supply_temperature == 310


def test_fetch_settings_pause_flag_other_than_one_is_false(
    device: FakeDevice, client: NilanClient
) -> None:
    device.regs[(1, REG.DHW_PAUSE)] = 2
    assert client.fetch_settings().dhw_paused is False


def test_fetch_settings_ambiguous_variant_reads_nothing_else() -> None:
    device = FakeDevice(geo_marker=0, air9_marker=0)
    client = NilanClient(Config(), transport_factory=device.session)
    with pytest.raises(AmbiguousVariantError):
        client.fetch_settings()
    assert all(address in (REG.DEVICE_TYPE_GEO, REG.DEVICE_TYPE_AIR9) for _, address in device.reads)


@pytest.mark.parametrize(
    "master, register",
    [(0, REG.T3_EXTRACT_AIR_TEMPERATURE), (1, REG.TEXT_ROOM_TEMPERATURE), (5, REG.TEXT_ROOM_TEMPERATURE)],
)
def test_fetch_readings_room_sensor(device: FakeDevice, client: NilanClient, master: int, register: int) -> None:
    device.regs[(1, REG.MASTER_TEMPERATURE_SENSOR_SETTING)] = master
    device.regs[(1, register)] = 215
    assert client.fetch_readings().room_temperature == 215


def test_fetch_readings_decodes_signed(device: FakeDevice, client: NilanClient) -> None:
    device.regs.update(
        {
            (1, REG.T3_EXTRACT_AIR_TEMPERATURE): 221,
            (1, REG.OUTDOOR_TEMPERATURE): to_register(-55),
            (1, REG.AVERAGE_HUMIDITY): 41,
            (1, REG.ACTUAL_HUMIDITY): 45,
            (1, REG.DHW_TOP_TANK_TEMPERATURE): 510,
            (1, REG.DHW_BOTTOM_TANK_TEMPERATURE): 430,
            (4, REG.T18_READING_GEO): 300,
            (4, REG.T18_READING_AIR9): 111,
        }
    )
    readings = client.fetch_readings()
    assert readings.outdoor_temperature == -55
    assert readings.room_temperature == 221
    assert readings.average_humidity == 41
    assert readings.actual_humidity == 45
    assert readings.dhw_tank_top_temperature == 510
    assert readings.dhw_tank_bottom_temperature == 430
    assert readings.supply_flow_temperature == 300


def test_fetch_readings_air9_flow_register() -> None:
    device = FakeDevice(geo_marker=0, air9_marker=9)
    device.regs[(4, REG.T18_READING_AIR9)] = 333
    client = NilanClient(Config(), transport_factory=device.session)
    assert client.fetch_readings().supply_flow_temperature == 333


def test_fetch_errors_all_clear(client: NilanClient) -> None:
    assert client.fetch_errors() == Errors(old_filter_warning=False, other_errors=False)


@pytest.mark.parametrize("register", REG.FILTER_WARNING_REGISTERS)
def test_fetch_errors_filter_warning(device: FakeDevice, client: NilanClient, register: int) -> None:
    device.regs[(1, register)] = 1
    assert client.fetch_errors() == Errors(old_filter_warning=True, other_errors=False)


@pytest.mark.parametrize("register", REG.ALARM_REGISTERS)
def test_fetch_errors_alarm(device: FakeDevice, client: NilanClient, register: int) -> None:
    device.regs[(1, register)] = 1
    assert client.fetch_errors() == Errors(old_filter_warning=False, other_errors=True)


def test_fetch_errors_value_other_than_one_is_inactive(device: FakeDevice, client: NilanClient) -> None:
    device.regs[(1, REG.EVENT_FIRE_THERM_ALARM)] = 2
    assert client.fetch_errors().other_errors is False


def test_settings_to_writes_skips_absent_fields() -> None:
    assert settings_to_writes(Settings()) == ({}, {})
    slave1, slave4 = settings_to_writes(Settings(dhw_paused=False, central_heating_on=True))
    assert slave1 == {REG.DHW_PAUSE: 0}
    assert slave4 == {REG.CENTRAL_HEATING_POWER: 1}


def test_supply_setpoint_writes_both_variants() -> None:
    slave1, slave4 = settings_to_writes(Settings(setpoint_supply_temperature=275))
    assert slave1 == {}
    assert slave4 == {
        REG.SETPOINT_SUPPLY_TEMPERATURE_AIR9: 275,
        REG.SETPOINT_SUPPLY_TEMPERATURE_GEO: 275,
    }


def test_apply_settings_does_not_resolve_variant(device: FakeDevice, client: NilanClient) -> None:
    client.apply_settings(Settings(setpoint_supply_temperature=275))
    assert device.reads == []
    assert device.writes == [
        (4, REG.SETPOINT_SUPPLY_TEMPERATURE_AIR9, 275),
        (4, REG.SETPOINT_SUPPLY_TEMPERATURE_GEO, 275),
    ]


@pytest.mark.parametrize("mode", [0, 1, 2])
def test_apply_settings_ventilation_mode(device: FakeDevice, client: NilanClient, mode: int) -> None:
    client.apply_settings(Settings(ventilation_mode=mode))
    assert device.writes == [(1, REG.VENTILATION_MODE, mode)]


@pytest.mark.parametrize("mode", [-1, 3, 42])
def test_apply_settings_rejects_ventilation_mode(
    device: FakeDevice, client: NilanClient, mode: int
) -> None:
    with pytest.raises(UnsupportedVentilationModeError):
        client.apply_settings(Settings(fan_speed=FanSpeed.LOW, ventilation_mode=mode))
    assert device.writes == []
    assert device.opened == 0


def test_apply_settings_slave1_failure_skips_slave4(device: FakeDevice, client: NilanClient) -> None:
    device.failing.add((1, REG.FAN_SPEED))
    with pytest.raises(TimeoutError):
        client.apply_settings(Settings(fan_speed=FanSpeed.LOW, central_heating_on=True))
    assert device.writes == []
    assert device.opened == device.closed == 1


def test_settings_round_trip(device: FakeDevice, client: NilanClient) -> None:
    written = Settings(
        fan_speed=FanSpeed.VERY_HIGH,
        desired_room_temperature=-15,
        desired_dhw_temperature=480,
        dhw_paused=True,
        dhw_pause_duration=2,
        central_heating_paused=True,
        central_heating_pause_duration=4,
        central_heating_on=False,
        ventilation_mode=1,
        ventilation_paused=True,
        setpoint_supply_temperature=-20,
    )
    client.apply_settings(written)
    assert client.fetch_settings() == written


def test_partial_update_leaves_other_fields(device: FakeDevice, client: NilanClient) -> None:
    client.apply_settings(Settings(desired_room_temperature=200, dhw_pause_duration=5))
    before = client.fetch_settings()
    client.apply_settings(Settings(desired_room_temperature=230))
    after = client.fetch_settings()
    assert after.desired_room_temperature == 230
    assert after.dhw_pause_duration == before.dhw_pause_duration == 5


def test_fetch_snapshot(client: NilanClient) -> None:
    readings, settings = client.fetch_snapshot()
    assert readings.room_temperature == 0
    assert settings.fan_speed == FanSpeed.NORMAL


def test_unknown_fan_speed_raises(device: FakeDevice, client: NilanClient) -> None:
    device.regs[(1, REG.FAN_SPEED)] = 42
    with pytest.raises(RegisterValueError):
        client.fetch_settings()


def test_simulation_env_uses_fake_device(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("NILAN_SIM", "1")
    client = NilanClient(Config())
    assert client.resolve_variant() == DeviceVariant.GEO
    client.apply_settings(Settings(fan_speed=FanSpeed.HIGH))
    assert client.fetch_settings().fan_speed == FanSpeed.HIGH


@pytest.mark.parametrize("mode", [True, False, 1.0, "1"])
def test_settings_to_writes_rejects_non_int_ventilation_mode(mode) -> None:
    with pytest.raises(UnsupportedVentilationModeError):
        settings_to_writes(Settings(ventilation_mode=mode))


def test_settings_to_writes_accepts_ventilation_mode_enum() -> None:
    slave1, _ = settings_to_writes(Settings(ventilation_mode=VentilationMode.HEATING))
    assert slave1 == {REG.VENTILATION_MODE: 2}


def _slave4_reads_after_markers(device: FakeDevice) -> list[tuple[int, int]]:
    markers = (REG.DEVICE_TYPE_GEO, REG.DEVICE_TYPE_AIR9)
    return [(slave, address) for slave, address in device.reads if slave == 4 and address not in markers]


def test_fetch_settings_slave1_failure_skips_slave4(device: FakeDevice, client: NilanClient) -> None:
    device.failing.add((1, REG.DHW_SETPOINT))
    with pytest.raises(TimeoutError):
        client.fetch_settings()
    assert _slave4_reads_after_markers(device) == []
    assert device.opened == device.closed == 3


def test_fetch_readings_slave1_failure_skips_slave4(device: FakeDevice, client: NilanClient) -> None:
    device.failing.add((1, REG.OUTDOOR_TEMPERATURE))
    with pytest.raises(TimeoutError):
        client.fetch_readings()
    assert _slave4_reads_after_markers(device) == []
    assert device.opened == device.closed == 4
