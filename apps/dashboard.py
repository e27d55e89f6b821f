"""Simple dashboard for Nilan heat pumps."""

from __future__ import annotations

import logging
import os
from dataclasses import asdict, dataclass
from typing import Any, Callable, Optional

from dash import Dash, Input, Output, State, ctx, dcc, html

from nilan.client import NilanClient
from nilan.config import Config
from nilan.errors import NilanError, RegisterValueError, UnsupportedVentilationModeError
from nilan.models import Errors, FanSpeed, Readings, Settings, VentilationMode


logger = logging.getLogger(__name__)


@dataclass
class _Ctx:
    cfg: dict[str, Any]
    client: Optional[NilanClient] = None


CTX = _Ctx(cfg={k.upper(): v for k, v in asdict(Config.from_env()).items()})

PLACEHOLDER = "—"


def _try_connect(cfg: dict[str, Any]) -> tuple[Optional[NilanClient], str]:
    """Create a client and check the device answers by resolving its variant."""
    client = NilanClient(Config(host=cfg["HOST"], port=cfg["PORT"], timeout=cfg["TIMEOUT"]))
    try:
        variant = client.resolve_variant()
    except NilanError as exc:
        logger.info("connect failed: %s", exc)
        return None, str(exc)
    logger.info("connected to %s variant at %s", variant.name, cfg["HOST"])
    return client, ""


def _call(
    state: dict[str, Any], func: Callable[[NilanClient], Any]
) -> tuple[Any | None, dict[str, Any]]:
    """Call *func* with active client and handle errors."""
    client = CTX.client
    if not state.get("connected") or client is None:
        return None, {**state, "connected": False, "error": "not connected"}
    try:
        result = func(client)
        return result, {**state, "error": ""}
    except (RegisterValueError, UnsupportedVentilationModeError) as exc:
        return None, {**state, "error": str(exc)}
    except NilanError as exc:
        logger.info("client error: %s", exc)
        CTX.client = None
        return None, {"connected": False, "error": str(exc)}


def _temperature(value: int) -> str:
    return f"{value / 10:.1f} °C"


def format_values(values: Optional[tuple[Readings, Errors]]) -> list[str]:
    if values is None:
        return [PLACEHOLDER] * 8
    readings, errors = values
    return [
        _temperature(readings.room_temperature),
        _temperature(readings.outdoor_temperature),
        f"{readings.actual_humidity} % (avg {readings.average_humidity} %)",
        _temperature(readings.dhw_tank_top_temperature),
        _temperature(readings.dhw_tank_bottom_temperature),
        _temperature(readings.supply_flow_temperature),
        "replace filter" if errors.old_filter_warning else "ok",
        "alarm" if errors.other_errors else "ok",
    ]


def settings_from_controls(
    trigger: Optional[str], fan_speed: Any, ventilation_mode: Any, room_temperature: Any
) -> Optional[Settings]:
    """Build the partial update for the control that was used.

    Room temperature is entered in degrees and stored in tenths.
    """
    if trigger == "btn_set_fan" and fan_speed is not None:
        return Settings(fan_speed=FanSpeed(int(fan_speed)))
    if trigger == "btn_set_vent" and ventilation_mode is not None:
        return Settings(ventilation_mode=int(ventilation_mode))
    if trigger == "btn_set_temp" and room_temperature is not None:
        if not 5 <= float(room_temperature) <= 40:
            return None
        return Settings(desired_room_temperature=round(float(room_temperature) * 10))
    return None


_LIVE = [
    ("room", "Room"),
    ("outdoor", "Outdoor"),
    ("humidity", "Humidity"),
    ("dhw_top", "DHW top"),
    ("dhw_bottom", "DHW bottom"),
    ("supply", "Supply flow (T18)"),
    ("filter", "Filter"),
    ("alarms", "Alarms"),
]


app = Dash(__name__)
app.layout = html.Div(
    className="container",
    children=[
        dcc.Store(id="state", data={"connected": False, "error": ""}),
        html.Div(
            id="alert",
            className="alert-banner",
            children=[
                html.Span(id="alert_msg"),
                html.Button("Reconnect", id="btn_reconnect", className="btn"),
            ],
        ),
        html.Div(
            className="card connection",
            children=[
                html.Div(
                    className="conn-fields",
                    children=[
                        html.Div(
                            [
                                html.Label("Host", htmlFor="cfg_host"),
                                dcc.Input(id="cfg_host", type="text", value=CTX.cfg["HOST"]),
                            ]
                        ),
                        html.Div(
                            [
                                html.Label("Port", htmlFor="cfg_port"),
                                dcc.Input(
                                    id="cfg_port",
                                    type="number",
                                    value=CTX.cfg["PORT"],
                                    min=1,
                                    max=65535,
                                ),
                            ]
                        ),
                        html.Button("Connect", id="btn_connect", className="btn"),
                    ],
                ),
                html.Span(id="status", className="badge disconnected"),
            ],
        ),
        html.Div(
            className="main-grid",
            children=[
                html.Div(
                    className="card",
                    children=[
                        html.H3("Readings"),
                        html.Div(
                            className="live-grid",
                            children=[
                                html.Div(
                                    className="mini-card",
                                    children=[
                                        html.Div(id=key, className="value skeleton"),
                                        html.Div(label, className="label"),
                                    ],
                                )
                                for key, label in _LIVE
                            ],
                        ),
                    ],
                ),
                html.Div(
                    className="card",
                    children=[
                        html.H3("Settings"),
                        html.Div(
                            className="ctrl-field",
                            children=[
                                dcc.Dropdown(
                                    id="fan_dd",
                                    options=[{"label": s.name, "value": int(s)} for s in FanSpeed],
                                    value=int(FanSpeed.NORMAL),
                                    clearable=False,
                                ),
                                html.Button("Set fan speed", id="btn_set_fan", className="btn"),
                            ],
                        ),
                        html.Div(
                            className="ctrl-field",
                            children=[
                                dcc.Dropdown(
                                    id="vent_dd",
                                    options=[
                                        {"label": m.name, "value": int(m)} for m in VentilationMode
                                    ],
                                    value=int(VentilationMode.AUTO),
                                    clearable=False,
                                ),
                                html.Button(
                                    "Set ventilation mode", id="btn_set_vent", className="btn"
                                ),
                            ],
                        ),
                        html.Div(
                            className="ctrl-field",
                            children=[
                                html.Label("Room temperature [°C]", htmlFor="new_temp"),
                                dcc.Input(id="new_temp", type="number", min=5, max=40, step=0.5),
                                html.Button(
                                    "Set room temperature", id="btn_set_temp", className="btn"
                                ),
                            ],
                        ),
                        html.Div(id="msg", className="msg"),
                    ],
                ),
            ],
        ),
        dcc.Interval(id="tick", interval=5000, n_intervals=0, disabled=True),
    ],
)


@app.callback(
    Output("state", "data"),
    Output("tick", "disabled"),
    Input("btn_connect", "n_clicks"),
    Input("btn_reconnect", "n_clicks"),
    State("cfg_host", "value"),
    State("cfg_port", "value"),
    prevent_initial_call=True,
)
def connect(_, __, host, port):
    cfg = {
        "HOST": host or CTX.cfg["HOST"],
        "PORT": int(port) if port is not None else CTX.cfg["PORT"],
        "TIMEOUT": CTX.cfg["TIMEOUT"],
    }
    client, err = _try_connect(cfg)
    if client is None:
        return {"connected": False, "error": err}, True
    CTX.client = client
    CTX.cfg.update(cfg)
    return {"connected": True, "error": ""}, False


@app.callback(
    *[Output(key, "children") for key, _ in _LIVE],
    Output("status", "children"),
    Output("state", "data", allow_duplicate=True),
    Input("tick", "n_intervals"),
    State("state", "data"),
    prevent_initial_call=True,
)
def update_view(_, state):
    values, state = _call(state, lambda c: (c.fetch_readings(), c.fetch_errors()))
    status = (
        f"Connected to {CTX.cfg['HOST']}:{CTX.cfg['PORT']}"
        if state.get("connected")
        else "Disconnected"
    )
    return (*format_values(values), status, state)


@app.callback(
    Output("msg", "children"),
    Output("state", "data", allow_duplicate=True),
    Input("btn_set_fan", "n_clicks"),
    Input("btn_set_vent", "n_clicks"),
    Input("btn_set_temp", "n_clicks"),
    State("fan_dd", "value"),
    State("vent_dd", "value"),
    State("new_temp", "value"),
    State("state", "data"),
    prevent_initial_call=True,
)
def apply_control(_, __, ___, fan_speed, ventilation_mode, room_temperature, state):
    settings = settings_from_controls(ctx.triggered_id, fan_speed, ventilation_mode, room_temperature)
    if settings is None:
        return "invalid value", state

    _, state = _call(state, lambda c: c.apply_settings(settings))
    return ("" if state.get("error") else "saved"), state


@app.callback(
    Output("new_temp", "disabled"),
    Output("btn_set_temp", "disabled"),
    Output("fan_dd", "disabled"),
    Output("btn_set_fan", "disabled"),
    Output("vent_dd", "disabled"),
    Output("btn_set_vent", "disabled"),
    Input("state", "data"),
)
def toggle_controls(state):
    return [not state.get("connected")] * 6


@app.callback(Output("status", "className"), Input("state", "data"))
def status_class(state):
    return "badge connected" if state.get("connected") else "badge disconnected"


@app.callback(
    Output("alert", "className"),
    Output("alert_msg", "children"),
    Input("state", "data"),
)
def show_alert(state):
    err = state.get("error")
    if err:
        return "alert-banner show", err
    return "alert-banner", ""


if __name__ == "__main__":
    logging.basicConfig(level=logging.DEBUG if os.getenv("NILAN_DEBUG") else logging.INFO)
    app.run(
        debug=False,
        use_reloader=False,
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT_HTTP", "8050")),
    )
