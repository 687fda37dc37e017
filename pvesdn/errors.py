from __future__ import annotations

NOT_FOUND_MARKER = "does not exist"


class ProxmoxError(Exception):
    """Base class for errors raised while talking to the Proxmox API."""


class TransportError(ProxmoxError):
    """HTTP or network failure. ``status`` is None when no response was received."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class NotFoundError(TransportError):
    """The API reported the object as missing.

    Proxmox answers a lookup of a missing SDN object with a generic HTTP 500 whose message
    contains "does not exist", so this is detected from the message text.
    """


class NoDataError(ProxmoxError):
    def __init__(self, message: str = "the server did not include a data object in the response") -> None:
        super().__init__(message)


class UnrecognizedVariantError(ValueError):
    def __init__(self, zone_type: str | None) -> None:
        super().__init__(f"SDN Zone type is not recognized: {zone_type}")
        self.zone_type = zone_type


def is_not_found(err: BaseException) -> bool:
    return isinstance(err, NotFoundError) or NOT_FOUND_MARKER in str(err)
