"""Command line interface for the nilan package."""

from __future__ import annotations

import argparse
import logging
import sys
import time
from typing import List

from .client import NilanClient
from .config import Config
from .errors import NilanError
from .models import FanSpeed, Settings

_BOOL = {"on": True, "off": False, "1": True, "0": False, "true": True, "false": False}


def _bool(value: str) -> bool:
    try:
        return _BOOL[value.lower()]
    except KeyError:
        raise argparse.ArgumentTypeError(f"expected on/off, got {value!r}") from None


def _fan_speed(value: str) -> FanSpeed:
    try:
        return FanSpeed[value.upper()]
    except KeyError:
        return FanSpeed(int(value))


def build_parser(env_cfg: Config) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Interact with a Nilan CTS700 heat pump")
    parser.add_argument("--host", default=env_cfg.host, help="device address [env NILAN_HOST]")
    parser.add_argument(
        "--port", type=int, default=env_cfg.port, help="modbus TCP port [env NILAN_PORT]"
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=env_cfg.timeout,
        help="per session timeout in seconds [env NILAN_TIMEOUT]",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")

    sub = parser.add_subparsers(dest="cmd", required=True)

    read = sub.add_parser("read", help="read values")
    read.add_argument(
        "what",
        choices=["settings", "readings", "errors", "variant"],
        help="value to read",
    )

    setp = sub.add_parser("set", help="change settings, omitted ones are left untouched")
    setp.add_argument("--fan-speed", type=_fan_speed, help="LOW, NORMAL, HIGH, VERY_HIGH or 101-104")
    setp.add_argument("--room-temperature", type=int, help="desired room temperature, C x 10")
    setp.add_argument("--dhw-temperature", type=int, help="desired DHW temperature, C x 10")
    setp.add_argument("--dhw-paused", type=_bool)
    setp.add_argument("--dhw-pause-duration", type=int)
    setp.add_argument("--ch-paused", type=_bool)
    setp.add_argument("--ch-pause-duration", type=int)
    setp.add_argument("--ch-on", type=_bool)
    setp.add_argument("--ventilation-mode", type=int, help="0 auto, 1 cooling, 2 heating")
    setp.add_argument("--ventilation-paused", type=_bool)
    setp.add_argument("--supply-setpoint", type=int, help="supply flow setpoint, C x 10")

    poll = sub.add_parser("poll", help="print readings and settings repeatedly")
    poll.add_argument("--count", type=int, default=100)
    poll.add_argument("--interval", type=float, default=1.0, help="seconds between polls")
    return parser


def settings_from_args(args: argparse.Namespace) -> Settings:
    return Settings(
        fan_speed=args.fan_speed,
        desired_room_temperature=args.room_temperature,
        desired_dhw_temperature=args.dhw_temperature,
        dhw_paused=args.dhw_paused,
        dhw_pause_duration=args.dhw_pause_duration,
        central_heating_paused=args.ch_paused,
        central_heating_pause_duration=args.ch_pause_duration,
        central_heating_on=args.ch_on,
        ventilation_mode=args.ventilation_mode,
        ventilation_paused=args.ventilation_paused,
        setpoint_supply_temperature=args.supply_setpoint,
    )


def main(argv: List[str] | None = None) -> int:
    """Run the nilan command line interface."""
    args = build_parser(Config.from_env()).parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    client = NilanClient(Config(host=args.host, port=args.port, timeout=args.timeout))

    try:
        if args.cmd == "read":
            if args.what == "settings":
                print(client.fetch_settings())
            elif args.what == "readings":
                print(client.fetch_readings())
            elif args.what == "errors":
                print(client.fetch_errors())
            else:
                print(client.resolve_variant().name)
        elif args.cmd == "set":
            client.apply_settings(settings_from_args(args))
        else:
            for i in range(args.count):
                if i:
                    time.sleep(args.interval)
                readings, settings = client.fetch_snapshot()
                print(readings)
                print(settings)
    except NilanError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
