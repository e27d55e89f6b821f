"""Selection of variant and sensor dependent registers.

The functions here only map raw marker and setting values to register
addresses. Reading those values is left to :class:`nilan.client.NilanClient`.
"""

from __future__ import annotations

from . import registers as REG
from .errors import AmbiguousVariantError
from .models import DeviceVariant

GEO_MARKER = 8
AIR9_MARKER = 9


def variant_from_markers(geo_marker: int, air9_marker: int) -> DeviceVariant:
    """Identify the device variant from the two device type registers.

    The GEO marker wins when it matches, whatever the AIR9 register holds.
    """
    if geo_marker == GEO_MARKER:
        return DeviceVariant.GEO
    if air9_marker == AIR9_MARKER:
        return DeviceVariant.AIR9
    raise AmbiguousVariantError(
        f"cannot determine device type (geo marker {geo_marker}, air9 marker {air9_marker})"
    )


def supply_flow_setpoint_register(variant: DeviceVariant) -> int:
    if variant == DeviceVariant.GEO:
        return REG.SETPOINT_SUPPLY_TEMPERATURE_GEO
    if variant == DeviceVariant.AIR9:
        return REG.SETPOINT_SUPPLY_TEMPERATURE_AIR9
    raise AmbiguousVariantError("cannot determine supply flow setpoint register")


def flow_temperature_register(variant: DeviceVariant) -> int:
    """T18 supply flow temperature reading register."""
    if variant == DeviceVariant.GEO:
        return REG.T18_READING_GEO
    if variant == DeviceVariant.AIR9:
        return REG.T18_READING_AIR9
    raise AmbiguousVariantError("cannot determine T18 reading register")


def room_temperature_register(master_sensor_setting: int) -> int:
    """Room temperature register for a master sensor setting.

    0 selects the T3 extract air sensor, any other value the external one.
    """
    if master_sensor_setting == 0:
        return REG.T3_EXTRACT_AIR_TEMPERATURE
    return REG.TEXT_ROOM_TEMPERATURE
