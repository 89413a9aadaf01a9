"""Builders for bond and vxlan links (``ip link add ... type bond|vxlan``).

Both builders wrap a link creation request, collect the attributes of the
link kind and hand them to the request as its info data when executed.
"""

from __future__ import annotations

import ipaddress
import struct
from typing import Iterable, Union

from .constants import (
    IFLA_BOND_ACTIVE_SLAVE,
    IFLA_BOND_AD_ACTOR_SYS_PRIO,
    IFLA_BOND_AD_ACTOR_SYSTEM,
    IFLA_BOND_AD_LACP_ACTIVE,
    IFLA_BOND_AD_LACP_RATE,
    IFLA_BOND_AD_SELECT,
    IFLA_BOND_AD_USER_PORT_KEY,
    IFLA_BOND_ALL_SLAVES_ACTIVE,
    IFLA_BOND_ARP_ALL_TARGETS,
    IFLA_BOND_ARP_INTERVAL,
    IFLA_BOND_ARP_IP_TARGET,
    IFLA_BOND_ARP_VALIDATE,
    IFLA_BOND_DOWNDELAY,
    IFLA_BOND_FAIL_OVER_MAC,
    IFLA_BOND_LP_INTERVAL,
    IFLA_BOND_MIIMON,
    IFLA_BOND_MIN_LINKS,
    IFLA_BOND_MISSED_MAX,
    IFLA_BOND_MODE,
    IFLA_BOND_NS_IP6_TARGET,
    IFLA_BOND_NUM_PEER_NOTIF,
    IFLA_BOND_PACKETS_PER_SLAVE,
    IFLA_BOND_PEER_NOTIF_DELAY,
    IFLA_BOND_PRIMARY,
    IFLA_BOND_PRIMARY_RESELECT,
    IFLA_BOND_RESEND_IGMP,
    IFLA_BOND_TLB_DYNAMIC_LB,
    IFLA_BOND_UPDELAY,
    IFLA_BOND_USE_CARRIER,
    IFLA_BOND_XMIT_HASH_POLICY,
    IFLA_VXLAN_AGEING,
    IFLA_VXLAN_COLLECT_METADATA,
    IFLA_VXLAN_GROUP,
    IFLA_VXLAN_GROUP6,
    IFLA_VXLAN_ID,
    IFLA_VXLAN_L2MISS,
    IFLA_VXLAN_L3MISS,
    IFLA_VXLAN_LABEL,
    IFLA_VXLAN_LEARNING,
    IFLA_VXLAN_LIMIT,
    IFLA_VXLAN_LINK,
    IFLA_VXLAN_LOCAL,
    IFLA_VXLAN_LOCAL6,
    IFLA_VXLAN_PORT,
    IFLA_VXLAN_PORT_RANGE,
    IFLA_VXLAN_PROXY,
    IFLA_VXLAN_RSC,
    IFLA_VXLAN_TOS,
    IFLA_VXLAN_TTL,
    IFLA_VXLAN_UDP_CSUM,
)
from .messages import InfoKind, Nla

IPv4Like = Union[str, int, bytes, ipaddress.IPv4Address]
IPv6Like = Union[str, int, bytes, ipaddress.IPv6Address]


def _v4(addr: IPv4Like) -> bytes:
    return ipaddress.IPv4Address(addr).packed


def _v6(addr: IPv6Like) -> bytes:
    return ipaddress.IPv6Address(addr).packed


def _address_list(kind: int, packed: Iterable[bytes]) -> Nla:
    """A nested list of addresses, each numbered by its position."""
    return Nla.nested(kind, (Nla(i, data) for i, data in enumerate(packed)))


class BondAddRequest:
    """A request to create a bond link, with its bonding options."""

    def __init__(self, request) -> None:
        self.request = request
        self.info_data: list[Nla] = []

    def _push(self, nla: Nla) -> BondAddRequest:
        self.info_data.append(nla)
        return self

    async def execute(self) -> None:
        """Send the request; raise NetlinkError if the kernel refuses it."""
        await self.request.link_info(InfoKind.BOND, self.info_data).execute()

    def up(self) -> BondAddRequest:
        """Bring the interface up once created."""
        self.request = self.request.up()
        return self

    def mode(self, mode: int) -> BondAddRequest:
        """Set the bonding mode."""
        return self._push(Nla.u8(IFLA_BOND_MODE, mode))

    def active_slave(self, active_slave: int) -> BondAddRequest:
        """Set the active slave by interface index."""
        return self._push(Nla.u32(IFLA_BOND_ACTIVE_SLAVE, active_slave))

    def miimon(self, miimon: int) -> BondAddRequest:
        """Set the MII link monitoring interval."""
        return self._push(Nla.u32(IFLA_BOND_MIIMON, miimon))

    def updelay(self, updelay: int) -> BondAddRequest:
        """Set the delay before enabling a slave after link recovery."""
        return self._push(Nla.u32(IFLA_BOND_UPDELAY, updelay))

    def downdelay(self, downdelay: int) -> BondAddRequest:
        """Set the delay before disabling a slave after link failure."""
        return self._push(Nla.u32(IFLA_BOND_DOWNDELAY, downdelay))

    def use_carrier(self, use_carrier: int) -> BondAddRequest:
        """Set whether carrier state is used for link monitoring."""
        return self._push(Nla.u8(IFLA_BOND_USE_CARRIER, use_carrier))

    def arp_interval(self, arp_interval: int) -> BondAddRequest:
        """Set the ARP monitoring interval."""
        return self._push(Nla.u32(IFLA_BOND_ARP_INTERVAL, arp_interval))

    def arp_validate(self, arp_validate: int) -> BondAddRequest:
        """Set the ARP validation mode."""
        return self._push(Nla.u32(IFLA_BOND_ARP_VALIDATE, arp_validate))

    def arp_all_targets(self, arp_all_targets: int) -> BondAddRequest:
        """Set how many ARP targets must be up."""
        return self._push(Nla.u32(IFLA_BOND_ARP_ALL_TARGETS, arp_all_targets))

    def primary(self, primary: int) -> BondAddRequest:
        """Set the primary slave by interface index."""
        return self._push(Nla.u32(IFLA_BOND_PRIMARY, primary))

    def primary_reselect(self, primary_reselect: int) -> BondAddRequest:
        """Set the primary reselection policy."""
        return self._push(Nla.u8(IFLA_BOND_PRIMARY_RESELECT, primary_reselect))

    def fail_over_mac(self, fail_over_mac: int) -> BondAddRequest:
        """Set the MAC address policy on failover."""
        return self._push(Nla.u8(IFLA_BOND_FAIL_OVER_MAC, fail_over_mac))

    def xmit_hash_policy(self, xmit_hash_policy: int) -> BondAddRequest:
        """Set the transmit hash policy."""
        return self._push(Nla.u8(IFLA_BOND_XMIT_HASH_POLICY, xmit_hash_policy))

    def resend_igmp(self, resend_igmp: int) -> BondAddRequest:
        """Set how many IGMP reports are sent after failover."""
        return self._push(Nla.u32(IFLA_BOND_RESEND_IGMP, resend_igmp))

    def num_peer_notif(self, num_peer_notif: int) -> BondAddRequest:
        """Set how many peer notifications are sent after failover."""
        return self._push(Nla.u8(IFLA_BOND_NUM_PEER_NOTIF, num_peer_notif))

    def all_slaves_active(self, all_slaves_active: int) -> BondAddRequest:
        """Set whether duplicate frames are delivered from inactive slaves."""
        return self._push(
            Nla.u8(IFLA_BOND_ALL_SLAVES_ACTIVE, all_slaves_active)
        )

    def min_links(self, min_links: int) -> BondAddRequest:
        """Set the minimum number of links for the carrier to be up."""
        return self._push(Nla.u32(IFLA_BOND_MIN_LINKS, min_links))

    def lp_interval(self, lp_interval: int) -> BondAddRequest:
        """Set the learning packet interval."""
        return self._push(Nla.u32(IFLA_BOND_LP_INTERVAL, lp_interval))

    def packets_per_slave(self, packets_per_slave: int) -> BondAddRequest:
        """Set packets sent per slave in balance-rr mode."""
        return self._push(
            Nla.u32(IFLA_BOND_PACKETS_PER_SLAVE, packets_per_slave)
        )

    def ad_lacp_rate(self, ad_lacp_rate: int) -> BondAddRequest:
        """Set the LACPDU rate."""
        return self._push(Nla.u8(IFLA_BOND_AD_LACP_RATE, ad_lacp_rate))

    def ad_select(self, ad_select: int) -> BondAddRequest:
        """Set the 802.3ad aggregation selection logic."""
        return self._push(Nla.u8(IFLA_BOND_AD_SELECT, ad_select))

    def ad_actor_sys_prio(self, ad_actor_sys_prio: int) -> BondAddRequest:
        """Set the 802.3ad system priority."""
        return self._push(
            Nla.u16(IFLA_BOND_AD_ACTOR_SYS_PRIO, ad_actor_sys_prio)
        )

    def ad_user_port_key(self, ad_user_port_key: int) -> BondAddRequest:
        """Set the 802.3ad user port key."""
        return self._push(Nla.u16(IFLA_BOND_AD_USER_PORT_KEY, ad_user_port_key))

    def ad_actor_system(self, ad_actor_system: bytes) -> BondAddRequest:
        """Set the 802.3ad system MAC address (six bytes)."""
        mac = bytes(ad_actor_system)
        if len(mac) != 6:
            raise ValueError(
                f"ad_actor_system needs 6 bytes, got {len(mac)}"
            )
        return self._push(Nla(IFLA_BOND_AD_ACTOR_SYSTEM, mac))

    def tlb_dynamic_lb(self, tlb_dynamic_lb: int) -> BondAddRequest:
        """Set dynamic shuffling of flows in tlb mode."""
        return self._push(Nla.u8(IFLA_BOND_TLB_DYNAMIC_LB, tlb_dynamic_lb))

    def peer_notif_delay(self, peer_notif_delay: int) -> BondAddRequest:
        """Set the delay between peer notifications."""
        return self._push(Nla.u32(IFLA_BOND_PEER_NOTIF_DELAY, peer_notif_delay))

    def ad_lacp_active(self, ad_lacp_active: int) -> BondAddRequest:
        """Set whether LACPDUs are sent actively."""
        return self._push(Nla.u8(IFLA_BOND_AD_LACP_ACTIVE, ad_lacp_active))

    def missed_max(self, missed_max: int) -> BondAddRequest:
        """Set the number of missed monitor intervals before link down."""
        return self._push(Nla.u8(IFLA_BOND_MISSED_MAX, missed_max))

    def arp_ip_target(self, arp_ip_target: Iterable[IPv4Like]) -> BondAddRequest:
        """Set the IPv4 ARP monitoring targets."""
        packed = [_v4(addr) for addr in arp_ip_target]
        return self._push(_address_list(IFLA_BOND_ARP_IP_TARGET, packed))

    def ns_ip6_target(self, ns_ip6_target: Iterable[IPv6Like]) -> BondAddRequest:
        """Set the IPv6 neighbour solicitation targets."""
        packed = [_v6(addr) for addr in ns_ip6_target]
        return self._push(_address_list(IFLA_BOND_NS_IP6_TARGET, packed))


class VxlanAddRequest:
    """A request to create a vxlan link (``ip link add NAME type vxlan``).

    Only one of ``remote`` and ``group`` may be given.
    """

    def __init__(self, request, vni: int) -> None:
        self.request = request
        self.info_data: list[Nla] = [Nla.u32(IFLA_VXLAN_ID, vni)]

    def _push(self, nla: Nla) -> VxlanAddRequest:
        self.info_data.append(nla)
        return self

    async def execute(self) -> None:
        """Send the request; raise NetlinkError if the kernel refuses it."""
        await self.request.link_info(InfoKind.VXLAN, self.info_data).execute()

    def up(self) -> VxlanAddRequest:
        """Bring the interface up once created."""
        self.request = self.request.up()
        return self

    def link(self, index: int) -> VxlanAddRequest:
        """Set the physical device for tunnel endpoint communication."""
        return self._push(Nla.u32(IFLA_VXLAN_LINK, index))

    def port(self, port: int) -> VxlanAddRequest:
        """Set the UDP destination port of the remote endpoint."""
        return self._push(Nla.u16_be(IFLA_VXLAN_PORT, port))

    def group(self, addr: IPv4Like) -> VxlanAddRequest:
        """Set the IPv4 multicast group to join."""
        return self._push(Nla(IFLA_VXLAN_GROUP, _v4(addr)))

    def group6(self, addr: IPv6Like) -> VxlanAddRequest:
        """Set the IPv6 multicast group to join."""
        return self._push(Nla(IFLA_VXLAN_GROUP6, _v6(addr)))

    def remote(self, addr: IPv4Like) -> VxlanAddRequest:
        """Set the IPv4 unicast destination of outgoing packets."""
        return self.group(addr)

    def remote6(self, addr: IPv6Like) -> VxlanAddRequest:
        """Set the IPv6 unicast destination of outgoing packets."""
        return self.group6(addr)

    def local(self, addr: IPv4Like) -> VxlanAddRequest:
        """Set the IPv4 source address of outgoing packets."""
        return self._push(Nla(IFLA_VXLAN_LOCAL, _v4(addr)))

    def local6(self, addr: IPv6Like) -> VxlanAddRequest:
        """Set the IPv6 source address of outgoing packets."""
        return self._push(Nla(IFLA_VXLAN_LOCAL6, _v6(addr)))

    def tos(self, tos: int) -> VxlanAddRequest:
        """Set the TOS value of outgoing packets."""
        return self._push(Nla.u8(IFLA_VXLAN_TOS, tos))

    def ttl(self, ttl: int) -> VxlanAddRequest:
        """Set the TTL value of outgoing packets."""
        return self._push(Nla.u8(IFLA_VXLAN_TTL, ttl))

    def label(self, label: int) -> VxlanAddRequest:
        """Set the flow label of outgoing packets."""
        return self._push(Nla.u32(IFLA_VXLAN_LABEL, label))

    def learning(self, learning: int) -> VxlanAddRequest:
        """Set whether unknown source addresses are learnt."""
        return self._push(Nla.u8(IFLA_VXLAN_LEARNING, learning))

    def ageing(self, seconds: int) -> VxlanAddRequest:
        """Set the lifetime of learnt forwarding entries in seconds."""
        return self._push(Nla.u32(IFLA_VXLAN_AGEING, seconds))

    def limit(self, limit: int) -> VxlanAddRequest:
        """Set the maximum number of forwarding entries."""
        return self._push(Nla.u32(IFLA_VXLAN_LIMIT, limit))

    def port_range(self, min: int, max: int) -> VxlanAddRequest:
        """Set the range of UDP source ports."""
        try:
            data = struct.pack("!HH", min, max)
        except struct.error as exc:
            raise ValueError(str(exc)) from None
        return self._push(Nla(IFLA_VXLAN_PORT_RANGE, data))

    def proxy(self, proxy: int) -> VxlanAddRequest:
        """Set whether ARP proxying is on."""
        return self._push(Nla.u8(IFLA_VXLAN_PROXY, proxy))

    def rsc(self, rsc: int) -> VxlanAddRequest:
        """Set whether route short circuit is on."""
        return self._push(Nla.u8(IFLA_VXLAN_RSC, rsc))

    def l2miss(self, l2miss: int) -> VxlanAddRequest:
        """Set whether link-layer address miss notifications are sent."""
        return self._push(Nla.u8(IFLA_VXLAN_L2MISS, l2miss))

    def l3miss(self, l3miss: int) -> VxlanAddRequest:
        """Set whether IP address miss notifications are sent."""
        return self._push(Nla.u8(IFLA_VXLAN_L3MISS, l3miss))

    def collect_metadata(self, collect_metadata: int) -> VxlanAddRequest:
        """Set whether the device collects tunnel metadata."""
        return self._push(Nla.u8(IFLA_VXLAN_COLLECT_METADATA, collect_metadata))

    def udp_csum(self, udp_csum: int) -> VxlanAddRequest:
        """Set whether UDP checksums are computed over IPv4."""
        return self._push(Nla.u8(IFLA_VXLAN_UDP_CSUM, udp_csum))