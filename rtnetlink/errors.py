"""Exceptions raised by rtnetlink requests."""

from __future__ import annotations

from typing import Any


def _byte_list(data: bytes) -> str:
    return str(list(data))


class RtnetlinkError(Exception):
    """Base class of every error raised by this package."""

    def __eq__(self, other: object) -> bool:
        if type(self) is not type(other):
            return NotImplemented
        return self.args == other.args  # type: ignore[attr-defined]

    def __hash__(self) -> int:
        return hash((type(self), str(self)))


class UnexpectedMessageError(RtnetlinkError):
    """A reply of a kind the request did not expect arrived."""

    def __init__(self, message: Any) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"Received an unexpected message {self.message!r}"


class NetlinkError(RtnetlinkError):
    """The kernel answered with a netlink error message."""

    def __init__(self, error: Any) -> None:
        super().__init__(error)
        self.error = error

    def __str__(self) -> str:
        return f"Received a netlink error message {self.error}"


class RequestFailedError(RtnetlinkError):
    """A request could not be sent."""

    def __init__(self) -> None:
        super().__init__()

    def __str__(self) -> str:
        return "A netlink request failed"


class NamespaceError(RtnetlinkError):
    """A network namespace operation failed."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason

    def __str__(self) -> str:
        return f"Namespace error {self.reason}"


class InvalidHardwareAddressError(RtnetlinkError):
    """A link message carried a malformed hardware address."""

    def __init__(self, address: bytes) -> None:
        address = bytes(address)
        super().__init__(address)
        self.address = address

    def __str__(self) -> str:
        return (
            "Received a link message (RTM_GETLINK, RTM_NEWLINK, RTM_SETLINK "
            "or RTMGETLINK) with an invalid hardware address attribute: "
            f"{_byte_list(self.address)}."
        )


class InvalidIpError(RtnetlinkError):
    """Bytes that should hold an IP address could not be parsed."""

    def __init__(self, address: bytes) -> None:
        address = bytes(address)
        super().__init__(address)
        self.address = address

    def __str__(self) -> str:
        return f"Failed to parse an IP address: {_byte_list(self.address)}"


class InvalidAddressError(RtnetlinkError):
    """An address and mask pair could not be parsed."""

    def __init__(self, address: bytes, mask: bytes) -> None:
        address, mask = bytes(address), bytes(mask)
        super().__init__(address, mask)
        self.address = address
        self.mask = mask

    def __str__(self) -> str:
        return (
            "Failed to parse a network address (IP and mask): "
            f"{_byte_list(self.address)}/{_byte_list(self.mask)}"
        )