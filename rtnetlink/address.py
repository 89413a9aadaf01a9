"""Requests that add, delete and list IP addresses (``ip address``)."""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass
from typing import AsyncIterator, Optional, Union

from .constants import (
    AF_INET,
    AF_INET6,
    IFA_ADDRESS,
    IFA_ANYCAST,
    IFA_BROADCAST,
    IFA_LOCAL,
    IFA_MULTICAST,
    IFA_UNSPEC,
    NLM_F_ACK,
    NLM_F_CREATE,
    NLM_F_DUMP,
    NLM_F_EXCL,
    NLM_F_REPLACE,
    NLM_F_REQUEST,
)
from .messages import (
    AddressMessage,
    MessageType,
    NetlinkHeader,
    NetlinkMessage,
    Nla,
    check_ack,
    expect_payload,
)

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]

# Attributes whose data is compared against an address filter.
_ADDRESS_NLA_KINDS = frozenset(
    {IFA_UNSPEC, IFA_ADDRESS, IFA_LOCAL, IFA_MULTICAST, IFA_ANYCAST}
)


def _as_ip(address: Union[str, bytes, int, IPAddress]) -> IPAddress:
    if isinstance(address, (ipaddress.IPv4Address, ipaddress.IPv6Address)):
        return address
    return ipaddress.ip_address(address)


async def _send_and_check(handle, message: NetlinkMessage) -> None:
    """Send a request and raise on any error reply."""
    async for reply in handle.request(message):
        check_ack(reply)


class AddressAddRequest:
    """A request to add an address to an interface (``ip address add``)."""

    def __init__(self, handle, index: int, address, prefix_len: int) -> None:
        address = _as_ip(address)
        if not 0 <= prefix_len <= address.max_prefixlen:
            raise ValueError(
                f"prefix length {prefix_len} out of range for {address}"
            )
        self.handle = handle
        self.is_replace = False

        message = AddressMessage()
        message.header.prefix_len = prefix_len
        message.header.index = index
        message.header.family = AF_INET if address.version == 4 else AF_INET6

        packed = address.packed
        if address.is_multicast:
            message.nlas.append(Nla(IFA_MULTICAST, packed))
        elif address.is_unspecified:
            message.nlas.append(Nla(IFA_UNSPEC, packed))
        elif address.version == 6:
            message.nlas.append(Nla(IFA_ADDRESS, packed))
        else:
            message.nlas.append(Nla(IFA_ADDRESS, packed))
            # For IPv4 the local address is the same as the address.
            message.nlas.append(Nla(IFA_LOCAL, packed))
            if prefix_len == 32:
                broadcast = packed
            else:
                value = (0xFFFF_FFFF >> prefix_len) | int(address)
                broadcast = ipaddress.IPv4Address(value).packed
            message.nlas.append(Nla(IFA_BROADCAST, broadcast))
        self.message = message

    def replace(self) -> AddressAddRequest:
        """Replace an existing matching address instead of failing."""
        self.is_replace = True
        return self

    async def execute(self) -> None:
        """Send the request; raise NetlinkError if the kernel refuses it."""
        mode = NLM_F_REPLACE if self.is_replace else NLM_F_EXCL
        flags = NLM_F_REQUEST | NLM_F_ACK | mode | NLM_F_CREATE
        request = NetlinkMessage(
            NetlinkHeader(MessageType.NEW_ADDRESS, flags), self.message
        )
        await _send_and_check(self.handle, request)


class AddressDelRequest:
    """A request to delete the address described by a message."""

    def __init__(self, handle, message: AddressMessage) -> None:
        self.handle = handle
        self.message = message

    async def execute(self) -> None:
        """Send the request; raise NetlinkError if the kernel refuses it."""
        request = NetlinkMessage(
            NetlinkHeader(MessageType.DEL_ADDRESS, NLM_F_REQUEST | NLM_F_ACK),
            self.message,
        )
        await _send_and_check(self.handle, request)


@dataclass
class _AddressFilter:
    """Client-side filter: the kernel cannot match address dumps itself."""

    index: Optional[int] = None
    prefix_len: Optional[int] = None
    address: Optional[IPAddress] = None

    def __call__(self, message: AddressMessage) -> bool:
        if self.index is not None and message.header.index != self.index:
            return False
        if (
            self.prefix_len is not None
            and message.header.prefix_len != self.prefix_len
        ):
            return False
        if self.address is not None:
            packed = self.address.packed
            return any(
                nla.kind in _ADDRESS_NLA_KINDS and nla.data == packed
                for nla in message.nlas
            )
        return True


class AddressGetRequest:
    """A request that dumps addresses (``ip address show``)."""

    def __init__(self, handle) -> None:
        self.handle = handle
        self.message = AddressMessage()
        self._filter = _AddressFilter()

    def set_link_index_filter(self, index: int) -> AddressGetRequest:
        """Return only the addresses of the given interface."""
        self._filter.index = index
        return self

    def set_prefix_length_filter(self, prefix: int) -> AddressGetRequest:
        """Return only the addresses with the given prefix length."""
        self._filter.prefix_len = prefix
        return self

    def set_address_filter(self, address) -> AddressGetRequest:
        """Return only the entries that carry the given address."""
        self._filter.address = _as_ip(address)
        return self

    async def execute(self) -> AsyncIterator[AddressMessage]:
        """Yield the matching address messages."""
        request = NetlinkMessage(
            NetlinkHeader(MessageType.GET_ADDRESS, NLM_F_REQUEST | NLM_F_DUMP),
            self.message,
        )
        matches = self._filter
        async for reply in self.handle.request(request):
            message = expect_payload(reply, MessageType.NEW_ADDRESS)
            if matches(message):
                yield message