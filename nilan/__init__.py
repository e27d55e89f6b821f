"""Nilan CTS700 heat pump communication library."""

from importlib import metadata as _metadata

try:
    __version__ = _metadata.version("nilan")
except _metadata.PackageNotFoundError:  # pragma: no cover - package not installed
    __version__ = "0.0.0"

from .client import NilanClient
from .config import Config
from .models import DeviceVariant, Errors, FanSpeed, Readings, Settings, VentilationMode
__all__ = [
    "NilanClient",
    "Config",
    "DeviceVariant",
    "Errors",
    "FanSpeed",
    "Readings",
    "Settings",
    "VentilationMode",
    "__version__",
]
