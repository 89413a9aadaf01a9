"""Handles that send requests over a connection and build typed requests."""

from __future__ import annotations

from typing import AsyncIterator

from .address import AddressAddRequest, AddressDelRequest, AddressGetRequest
from .errors import RequestFailedError
from .link import (
    LinkDelPropRequest,
    LinkDelRequest,
    LinkGetRequest,
    LinkNewPropRequest,
    LinkSetRequest,
)
from .link_add import LinkAddRequest
from .messages import AddressMessage, NetlinkMessage


class Handle:
    """Sends requests over a connection and hands out per-topic handles."""

    def __init__(self, connection) -> None:
        self.connection = connection

    def request(self, message: NetlinkMessage) -> AsyncIterator[NetlinkMessage]:
        """Send a request and return an async iterator over its replies."""
        try:
            return self.connection.request(message)
        except OSError as exc:
            raise RequestFailedError() from exc

    def notify(self, message: NetlinkMessage) -> None:
        """Send a message that expects no reply."""
        try:
            self.connection.notify(message)
        except OSError as exc:
            raise RequestFailedError() from exc

    def link(self) -> LinkHandle:
        """Requests on links (``ip link``)."""
        return LinkHandle(self)

    def address(self) -> AddressHandle:
        """Requests on addresses (``ip address``)."""
        return AddressHandle(self)


class LinkHandle:
    """Builds link requests."""

    def __init__(self, handle: Handle) -> None:
        self.handle = handle

    def set(self, index: int) -> LinkSetRequest:
        """Change the link with the given index."""
        return LinkSetRequest(self.handle, index)

    def add(self) -> LinkAddRequest:
        """Create a link."""
        return LinkAddRequest(self.handle)

    def property_add(self, index: int) -> LinkNewPropRequest:
        """Add properties to the link with the given index."""
        return LinkNewPropRequest(self.handle, index)

    def property_del(self, index: int) -> LinkDelPropRequest:
        """Remove properties from the link with the given index."""
        return LinkDelPropRequest(self.handle, index)

    def delete(self, index: int) -> LinkDelRequest:
        """Delete the link with the given index."""
        return LinkDelRequest(self.handle, index)

    def get(self) -> LinkGetRequest:
        """List links (``ip link show``)."""
        return LinkGetRequest(self.handle)


class AddressHandle:
    """Builds address requests."""

    def __init__(self, handle: Handle) -> None:
        self.handle = handle

    def get(self) -> AddressGetRequest:
        """List addresses (``ip address show``)."""
        return AddressGetRequest(self.handle)

    def add(self, index: int, address, prefix_len: int) -> AddressAddRequest:
        """Add an address to the interface with the given index."""
        return AddressAddRequest(self.handle, index, address, prefix_len)

    def delete(self, address: AddressMessage) -> AddressDelRequest:
        """Delete the address described by a message."""
        return AddressDelRequest(self.handle, address)