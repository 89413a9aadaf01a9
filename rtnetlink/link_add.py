"""The request that creates network links (``ip link add``)."""

from __future__ import annotations

from typing import Iterable, Optional, Union

from .constants import (
    IFF_UP,
    IFLA_IFNAME,
    IFLA_INFO_DATA,
    IFLA_INFO_KIND,
    IFLA_LINK,
    IFLA_LINKINFO,
    IFLA_MACVLAN_MODE,
    IFLA_VLAN_ID,
    IFLA_XFRM_IF_ID,
    NLM_F_ACK,
    NLM_F_CREATE,
    NLM_F_EXCL,
    NLM_F_REPLACE,
    NLM_F_REQUEST,
    VETH_INFO_PEER,
)
from .link_kinds import BondAddRequest, VxlanAddRequest
from .messages import (
    InfoKind,
    LinkMessage,
    MessageType,
    NetlinkHeader,
    NetlinkMessage,
    Nla,
    check_ack,
)


class LinkAddRequest:
    """A request to create a new link (``ip link add``).

    Helpers cover common link kinds; anything else can be built by editing
    ``message`` directly before calling ``execute``.
    """

    def __init__(self, handle) -> None:
        self.handle = handle
        self.message = LinkMessage()
        self.is_replace = False

    async def execute(self) -> None:
        """Send the request; raise NetlinkError if the kernel refuses it."""
        mode = NLM_F_REPLACE if self.is_replace else NLM_F_EXCL
        flags = NLM_F_REQUEST | NLM_F_ACK | mode | NLM_F_CREATE
        request = NetlinkMessage(
            NetlinkHeader(MessageType.NEW_LINK, flags), self.message
        )
        async for reply in self.handle.request(request):
            check_ack(reply)

    def dummy(self, name: str) -> LinkAddRequest:
        """Create a dummy link (``ip link add NAME type dummy``)."""
        return self._name(name).link_info(InfoKind.DUMMY, None).up()

    def veth(self, name: str, peer_name: str) -> LinkAddRequest:
        """Create a veth pair (``ip link add NAME type veth peer name PEER``)."""
        # The main message carries peer_name; the nested peer carries name.
        peer = LinkMessage()
        peer.nlas.append(Nla.string(IFLA_IFNAME, name))
        data = [Nla(VETH_INFO_PEER, peer.encode())]
        return self._name(peer_name).up().link_info(InfoKind.VETH, data)

    def vlan(self, name: str, index: int, vlan_id: int) -> LinkAddRequest:
        """Create a vlan with the given id on the link with the given index."""
        return (
            self._name(name)
            .link_info(InfoKind.VLAN, [Nla.u16(IFLA_VLAN_ID, vlan_id)])
            ._append_nla(Nla.u32(IFLA_LINK, index))
            .up()
        )

    def macvlan(self, name: str, index: int, mode: int) -> LinkAddRequest:
        """Create a macvlan on a link; mode is a combination of mode flags."""
        return (
            self._name(name)
            .link_info(InfoKind.MACVLAN, [Nla.u32(IFLA_MACVLAN_MODE, mode)])
            ._append_nla(Nla.u32(IFLA_LINK, index))
            .up()
        )

    def macvtap(self, name: str, index: int, mode: int) -> LinkAddRequest:
        """Create a macvtap on a link; mode is a combination of mode flags."""
        return (
            self._name(name)
            .link_info(InfoKind.MACVTAP, [Nla.u32(IFLA_MACVLAN_MODE, mode)])
            ._append_nla(Nla.u32(IFLA_LINK, index))
            .up()
        )

    def vxlan(self, name: str, vni: int) -> VxlanAddRequest:
        """Start creating a vxlan with the given network identifier."""
        return VxlanAddRequest(self._name(name), vni)

    def xfrmtun(self, name: str, ifid: int) -> LinkAddRequest:
        """Create an xfrm tunnel with the given interface id."""
        return (
            self._name(name)
            .link_info(InfoKind.XFRM, [Nla.u32(IFLA_XFRM_IF_ID, ifid)])
            .up()
        )

    def bond(self, name: str) -> BondAddRequest:
        """Start creating a bond."""
        return BondAddRequest(self._name(name))

    def bridge(self, name: str) -> LinkAddRequest:
        """Create a bridge (``ip link add NAME type bridge``)."""
        return (
            self._name(name)
            .link_info(InfoKind.BRIDGE, None)
            ._append_nla(Nla.string(IFLA_IFNAME, name))
        )

    def replace(self) -> LinkAddRequest:
        """Replace an existing matching link instead of failing."""
        self.is_replace = True
        return self

    def up(self) -> LinkAddRequest:
        """Create the link in the up state."""
        self.message.header.flags = IFF_UP
        self.message.header.change_mask = IFF_UP
        return self

    def link_info(
        self,
        kind: Union[InfoKind, str],
        data: Optional[Iterable[Nla]] = None,
    ) -> LinkAddRequest:
        """Append the link info attribute: the kind and optional kind data."""
        info = [Nla.string(IFLA_INFO_KIND, kind)]
        if data is not None:
            info.append(Nla.nested(IFLA_INFO_DATA, data))
        return self._append_nla(Nla.nested(IFLA_LINKINFO, info))

    def _name(self, name: str) -> LinkAddRequest:
        return self._append_nla(Nla.string(IFLA_IFNAME, name))

    def _append_nla(self, nla: Nla) -> LinkAddRequest:
        self.message.nlas.append(nla)
        return self