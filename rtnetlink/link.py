"""Requests that list, change and delete network links (``ip link``)."""

from __future__ import annotations

from typing import AsyncIterator, Iterable

from .constants import (
    IFF_NOARP,
    IFF_PROMISC,
    IFF_UP,
    IFLA_ADDRESS,
    IFLA_ALT_IFNAME,
    IFLA_EXT_MASK,
    IFLA_IFNAME,
    IFLA_MASTER,
    IFLA_MTU,
    IFLA_NET_NS_FD,
    IFLA_NET_NS_PID,
    IFLA_PROP_LIST,
    NLM_F_ACK,
    NLM_F_APPEND,
    NLM_F_CREATE,
    NLM_F_DUMP,
    NLM_F_EXCL,
    NLM_F_REQUEST,
)
from .messages import (
    LinkMessage,
    MessageType,
    NetlinkHeader,
    NetlinkMessage,
    Nla,
    check_ack,
    expect_payload,
)


async def _send_and_check(
    handle, message_type: MessageType, flags: int, message: LinkMessage
) -> None:
    """Send a request and raise NetlinkError on any error reply."""
    request = NetlinkMessage(NetlinkHeader(message_type, flags), message)
    async for reply in handle.request(request):
        check_ack(reply)


def _indexed_message(index: int) -> LinkMessage:
    message = LinkMessage()
    message.header.index = index
    return message


def _alt_ifname_list(alt_ifnames: Iterable[str]) -> Nla:
    props = [Nla.string(IFLA_ALT_IFNAME, name) for name in alt_ifnames]
    return Nla.nested(IFLA_PROP_LIST, props, flagged=True)


class LinkDelRequest:
    """A request to delete the link with a given index."""

    def __init__(self, handle, index: int) -> None:
        self.handle = handle
        self.message = _indexed_message(index)

    async def execute(self) -> None:
        """Send the request; raise NetlinkError if the kernel refuses it."""
        await _send_and_check(
            self.handle,
            MessageType.DEL_LINK,
            NLM_F_REQUEST | NLM_F_ACK,
            self.message,
        )


class LinkGetRequest:
    """A request that retrieves links (``ip link show``).

    By default every link is dumped; matching an index or a name asks the
    kernel for that single link instead.
    """

    def __init__(self, handle) -> None:
        self.handle = handle
        self.message = LinkMessage()
        self.dump = True

    def set_filter_mask(self, family: int, filter_mask: int) -> LinkGetRequest:
        """Set the interface family and an extended filter mask."""
        self.message.header.interface_family = family
        self.message.nlas.append(Nla.u32(IFLA_EXT_MASK, filter_mask))
        return self

    def match_index(self, index: int) -> LinkGetRequest:
        """Look up a link by index."""
        self.dump = False
        self.message.header.index = index
        return self

    def match_name(self, name: str) -> LinkGetRequest:
        """Look up a link by name."""
        self.dump = False
        self.message.nlas.append(Nla.string(IFLA_IFNAME, name))
        return self

    async def execute(self) -> AsyncIterator[LinkMessage]:
        """Yield the link messages the kernel returns."""
        flags = NLM_F_REQUEST | NLM_F_DUMP if self.dump else NLM_F_REQUEST
        request = NetlinkMessage(
            NetlinkHeader(MessageType.GET_LINK, flags), self.message
        )
        async for reply in self.handle.request(request):
            yield expect_payload(reply, MessageType.NEW_LINK)


class LinkSetRequest:
    """A request that changes the link with a given index (``ip link set``)."""

    def __init__(self, handle, index: int) -> None:
        self.handle = handle
        self.message = _indexed_message(index)

    async def execute(self) -> None:
        """Send the request; raise NetlinkError if the kernel refuses it."""
        await _send_and_check(
            self.handle,
            MessageType.SET_LINK,
            NLM_F_REQUEST | NLM_F_ACK | NLM_F_EXCL | NLM_F_CREATE,
            self.message,
        )

    def master(self, master_index: int) -> LinkSetRequest:
        """Attach the link to a master such as a bridge; 0 detaches it."""
        self.message.nlas.append(Nla.u32(IFLA_MASTER, master_index))
        return self

    def nomaster(self) -> LinkSetRequest:
        """Detach the link from its master."""
        return self.master(0)

    def up(self) -> LinkSetRequest:
        """Bring the link up."""
        self.message.header.flags |= IFF_UP
        self.message.header.change_mask |= IFF_UP
        return self

    def down(self) -> LinkSetRequest:
        """Bring the link down."""
        self.message.header.flags &= ~IFF_UP
        self.message.header.change_mask |= IFF_UP
        return self

    def promiscuous(self, enable: bool) -> LinkSetRequest:
        """Turn promiscuous mode on or off."""
        if enable:
            self.message.header.flags |= IFF_PROMISC
        else:
            self.message.header.flags &= ~IFF_PROMISC
        self.message.header.change_mask |= IFF_PROMISC
        return self

    def arp(self, enable: bool) -> LinkSetRequest:
        """Turn the ARP protocol on or off."""
        if enable:
            self.message.header.flags &= ~IFF_NOARP
        else:
            self.message.header.flags |= IFF_NOARP
        self.message.header.change_mask |= IFF_NOARP
        return self

    def name(self, name: str) -> LinkSetRequest:
        """Rename the link."""
        self.message.nlas.append(Nla.string(IFLA_IFNAME, name))
        return self

    def mtu(self, mtu: int) -> LinkSetRequest:
        """Set the MTU of the link."""
        self.message.nlas.append(Nla.u32(IFLA_MTU, mtu))
        return self

    def address(self, address: bytes) -> LinkSetRequest:
        """Set the hardware address of the link."""
        self.message.nlas.append(Nla(IFLA_ADDRESS, bytes(address)))
        return self

    def setns_by_pid(self, pid: int) -> LinkSetRequest:
        """Move the link into the network namespace of a process."""
        self.message.nlas.append(Nla.u32(IFLA_NET_NS_PID, pid))
        return self

    def setns_by_fd(self, fd: int) -> LinkSetRequest:
        """Move the link into the network namespace behind a descriptor."""
        self.message.nlas.append(Nla.i32(IFLA_NET_NS_FD, fd))
        return self


class LinkNewPropRequest:
    """A request that adds link properties (``ip link property add``)."""

    def __init__(self, handle, index: int) -> None:
        self.handle = handle
        self.message = _indexed_message(index)

    async def execute(self) -> None:
        """Send the request; raise NetlinkError if the kernel refuses it."""
        await _send_and_check(
            self.handle,
            MessageType.NEW_LINK_PROP,
            NLM_F_REQUEST | NLM_F_ACK | NLM_F_EXCL | NLM_F_CREATE | NLM_F_APPEND,
            self.message,
        )

    def alt_ifname(self, alt_ifnames: Iterable[str]) -> LinkNewPropRequest:
        """Add alternative names to the link."""
        self.message.nlas.append(_alt_ifname_list(alt_ifnames))
        return self


class LinkDelPropRequest:
    """A request that removes link properties (``ip link property del``)."""

    def __init__(self, handle, index: int) -> None:
        self.handle = handle
        self.message = _indexed_message(index)

    async def execute(self) -> None:
        """Send the request; raise NetlinkError if the kernel refuses it."""
        await _send_and_check(
            self.handle,
            MessageType.DEL_LINK_PROP,
            NLM_F_REQUEST | NLM_F_ACK | NLM_F_EXCL,
            self.message,
        )

    def alt_ifname(self, alt_ifnames: Iterable[str]) -> LinkDelPropRequest:
        """Remove alternative names from the link."""
        self.message.nlas.append(_alt_ifname_list(alt_ifnames))
        return self