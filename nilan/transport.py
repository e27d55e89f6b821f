"""Transport abstraction for Modbus communication."""

from __future__ import annotations

import logging
from typing import Callable, List, Optional

from pymodbus.client import ModbusTcpClient
from pymodbus.exceptions import ModbusException, ModbusIOException

from . import registers as REG
from .config import Config
from .errors import TimeoutError, TransportError

logger = logging.getLogger(__name__)


class Transport:
    """A session against one slave of the unit.

    A transport is opened for a single batch of register operations and
    closed right after it.
    """

    def read_holding_registers(self, address: int, count: int) -> List[int]:
        raise NotImplementedError

    def write_register(self, address: int, value: int) -> None:
        raise NotImplementedError

    def close(self) -> None:  # pragma: no cover - default
        """Close transport resources."""


TransportFactory = Callable[[int], Transport]


class TCPTransport(Transport):
    """Modbus TCP transport based on pymodbus."""

    def __init__(self, cfg: Config, slave_id: int) -> None:
        self._client = ModbusTcpClient(
            cfg.host,
            port=cfg.port,
            timeout=cfg.timeout,
            retries=0,
        )
        self._slave_id = slave_id
        if not self._client.connect():
            raise TransportError(f"TCP connection failed to {cfg.host}:{cfg.port}")
        logger.debug("connected to %s:%s, slave %s", cfg.host, cfg.port, slave_id)

    def _call(self, func, *args, **kwargs):
        try:
            result = func(*args, **kwargs, device_id=self._slave_id)
        except ModbusIOException as exc:
            raise TimeoutError("modbus timeout") from exc
        except ModbusException as exc:
            raise TransportError(str(exc)) from exc
        if result is None:
            raise TimeoutError("modbus timeout")
        if result.isError():
            raise TransportError(str(result))
        return result

    def read_holding_registers(self, address: int, count: int) -> List[int]:
        rr = self._call(self._client.read_holding_registers, address, count=count)
        return list(rr.registers)

    def write_register(self, address: int, value: int) -> None:
        self._call(self._client.write_register, address, value)

    def close(self) -> None:
        self._client.close()


class FakeDevice:
    """In-memory register spaces of both slaves, used for simulations."""

    def __init__(self, variant_markers: Optional[dict[int, int]] = None) -> None:
        self.regs: dict[tuple[int, int], int] = {}
        markers = variant_markers or {REG.DEVICE_TYPE_GEO: 8}
        for address, value in markers.items():
            self.regs[(REG.SLAVE_4, address)] = value
        self.regs[(REG.SLAVE_1, REG.FAN_SPEED)] = 102
        self.regs[(REG.SLAVE_1, REG.DESIRED_ROOM_TEMPERATURE)] = 220
        self.regs[(REG.SLAVE_1, REG.AVERAGE_HUMIDITY)] = 40

    def session(self, slave_id: int) -> "FakeTransport":
        return FakeTransport(self, slave_id)


class FakeTransport(Transport):
    """Session on a :class:`FakeDevice`."""

    def __init__(self, device: FakeDevice, slave_id: int) -> None:
        self._device = device
        self._slave_id = slave_id

    def read_holding_registers(self, address: int, count: int) -> List[int]:
        return [self._device.regs.get((self._slave_id, address + i), 0) for i in range(count)]

    def write_register(self, address: int, value: int) -> None:
        self._device.regs[(self._slave_id, address)] = int(value)

    def close(self) -> None:  # pragma: no cover - nothing to do
        pass
