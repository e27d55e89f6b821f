"""Custom exceptions for the nilan package."""


class NilanError(Exception):
    """Base class for all Nilan related errors."""


class TransportError(NilanError):
    """Communication error in the transport layer."""


class TimeoutError(TransportError):
    """Raised when a transport operation times out."""


class ShortReadError(NilanError):
    """A read returned an unexpected number of registers."""


class AmbiguousVariantError(NilanError):
    """The device type marker registers do not identify a known variant."""


class UnsupportedVentilationModeError(NilanError, ValueError):
    """Ventilation mode outside of 0, 1 and 2."""


class RegisterValueError(NilanError, ValueError):
    """A value cannot be encoded to or decoded from a register."""
