"""Numeric constants of the netlink and rtnetlink protocols."""

# Legacy multicast group bit masks (RTMGRP_*).
RTMGRP_LINK = 1
RTMGRP_NOTIFY = 2
RTMGRP_NEIGH = 4
RTMGRP_TC = 8
RTMGRP_IPV4_IFADDR = 16
RTMGRP_IPV4_MROUTE = 32
RTMGRP_IPV4_ROUTE = 64
RTMGRP_IPV4_RULE = 128
RTMGRP_IPV6_IFADDR = 256
RTMGRP_IPV6_MROUTE = 512
RTMGRP_IPV6_ROUTE = 1024
RTMGRP_IPV6_IFINFO = 2048
RTMGRP_DECNET_IFADDR = 4096
RTMGRP_DECNET_ROUTE = 16_384
RTMGRP_IPV6_PREFIX = 131_072

# Multicast group numbers (RTNLGRP_*).
RTNLGRP_NONE = 0
RTNLGRP_LINK = 1
RTNLGRP_NOTIFY = 2
RTNLGRP_NEIGH = 3
RTNLGRP_TC = 4
RTNLGRP_IPV4_IFADDR = 5
RTNLGRP_IPV4_MROUTE = 6
RTNLGRP_IPV4_ROUTE = 7
RTNLGRP_IPV4_RULE = 8
RTNLGRP_IPV6_IFADDR = 9
RTNLGRP_IPV6_MROUTE = 10
RTNLGRP_IPV6_ROUTE = 11
RTNLGRP_IPV6_IFINFO = 12
RTNLGRP_DECNET_IFADDR = 13
RTNLGRP_NOP2 = 14
RTNLGRP_DECNET_ROUTE = 15
RTNLGRP_DECNET_RULE = 16
RTNLGRP_NOP4 = 17
RTNLGRP_IPV6_PREFIX = 18
RTNLGRP_IPV6_RULE = 19
RTNLGRP_ND_USEROPT = 20
RTNLGRP_PHONET_IFADDR = 21
RTNLGRP_PHONET_ROUTE = 22
RTNLGRP_DCB = 23
RTNLGRP_IPV4_NETCONF = 24
RTNLGRP_IPV6_NETCONF = 25
RTNLGRP_MDB = 26
RTNLGRP_MPLS_ROUTE = 27
RTNLGRP_NSID = 28
RTNLGRP_MPLS_NETCONF = 29

# Netlink protocol family of the routing socket.
NETLINK_ROUTE = 0

# Netlink message header flags.
NLM_F_REQUEST = 0x1
NLM_F_MULTIPART = 0x2
NLM_F_ACK = 0x4
NLM_F_ECHO = 0x8
NLM_F_ROOT = 0x100
NLM_F_MATCH = 0x200
NLM_F_ATOMIC = 0x400
NLM_F_DUMP = NLM_F_ROOT | NLM_F_MATCH
NLM_F_REPLACE = 0x100
NLM_F_EXCL = 0x200
NLM_F_CREATE = 0x400
NLM_F_APPEND = 0x800

# Attribute type flags.
NLA_F_NESTED = 0x8000
NLA_F_NET_BYTEORDER = 0x4000
NLA_TYPE_MASK = 0x3FFF

# Address families.
AF_UNSPEC = 0
AF_INET = 2
AF_BRIDGE = 7
AF_INET6 = 10

# Interface flags.
IFF_UP = 0x1
IFF_BROADCAST = 0x2
IFF_LOOPBACK = 0x8
IFF_RUNNING = 0x40
IFF_NOARP = 0x80
IFF_PROMISC = 0x100
IFF_MULTICAST = 0x1000

# Extended link filter masks.
RTEXT_FILTER_VF = 0x1
RTEXT_FILTER_BRVLAN = 0x2
RTEXT_FILTER_BRVLAN_COMPRESSED = 0x4

# Link attributes (IFLA_*).
IFLA_UNSPEC = 0
IFLA_ADDRESS = 1
IFLA_BROADCAST = 2
IFLA_IFNAME = 3
IFLA_MTU = 4
IFLA_LINK = 5
IFLA_QDISC = 6
IFLA_STATS = 7
IFLA_MASTER = 10
IFLA_TXQLEN = 13
IFLA_OPERSTATE = 16
IFLA_LINKMODE = 17
IFLA_LINKINFO = 18
IFLA_NET_NS_PID = 19
IFLA_IFALIAS = 20
IFLA_AF_SPEC = 26
IFLA_GROUP = 27
IFLA_NET_NS_FD = 28
IFLA_EXT_MASK = 29
IFLA_PROMISCUITY = 30
IFLA_CARRIER = 33
IFLA_PROP_LIST = 52
IFLA_ALT_IFNAME = 53

# Nested inside IFLA_LINKINFO.
IFLA_INFO_KIND = 1
IFLA_INFO_DATA = 2

# Nested inside veth info data.
VETH_INFO_PEER = 1

# Nested inside vlan info data.
IFLA_VLAN_ID = 1

# Nested inside macvlan and macvtap info data.
IFLA_MACVLAN_MODE = 1

# Nested inside xfrm info data.
IFLA_XFRM_LINK = 1
IFLA_XFRM_IF_ID = 2

# Nested inside vxlan info data.
IFLA_VXLAN_ID = 1
IFLA_VXLAN_GROUP = 2
IFLA_VXLAN_LINK = 3
IFLA_VXLAN_LOCAL = 4
IFLA_VXLAN_TTL = 5
IFLA_VXLAN_TOS = 6
IFLA_VXLAN_LEARNING = 7
IFLA_VXLAN_AGEING = 8
IFLA_VXLAN_LIMIT = 9
IFLA_VXLAN_PORT_RANGE = 10
IFLA_VXLAN_PROXY = 11
IFLA_VXLAN_RSC = 12
IFLA_VXLAN_L2MISS = 13
IFLA_VXLAN_L3MISS = 14
IFLA_VXLAN_PORT = 15
IFLA_VXLAN_GROUP6 = 16
IFLA_VXLAN_LOCAL6 = 17
IFLA_VXLAN_UDP_CSUM = 18
IFLA_VXLAN_COLLECT_METADATA = 25
IFLA_VXLAN_LABEL = 26

# Nested inside bond info data.
IFLA_BOND_MODE = 1
IFLA_BOND_ACTIVE_SLAVE = 2
IFLA_BOND_MIIMON = 3
IFLA_BOND_UPDELAY = 4
IFLA_BOND_DOWNDELAY = 5
IFLA_BOND_USE_CARRIER = 6
IFLA_BOND_ARP_INTERVAL = 7
IFLA_BOND_ARP_IP_TARGET = 8
IFLA_BOND_ARP_VALIDATE = 9
IFLA_BOND_ARP_ALL_TARGETS = 10
IFLA_BOND_PRIMARY = 11
IFLA_BOND_PRIMARY_RESELECT = 12
IFLA_BOND_FAIL_OVER_MAC = 13
IFLA_BOND_XMIT_HASH_POLICY = 14
IFLA_BOND_RESEND_IGMP = 15
IFLA_BOND_NUM_PEER_NOTIF = 16
IFLA_BOND_ALL_SLAVES_ACTIVE = 17
IFLA_BOND_MIN_LINKS = 18
IFLA_BOND_LP_INTERVAL = 19
IFLA_BOND_PACKETS_PER_SLAVE = 20
IFLA_BOND_AD_LACP_RATE = 21
IFLA_BOND_AD_SELECT = 22
IFLA_BOND_AD_INFO = 23
IFLA_BOND_AD_ACTOR_SYS_PRIO = 24
IFLA_BOND_AD_USER_PORT_KEY = 25
IFLA_BOND_AD_ACTOR_SYSTEM = 26
IFLA_BOND_TLB_DYNAMIC_LB = 27
IFLA_BOND_PEER_NOTIF_DELAY = 28
IFLA_BOND_AD_LACP_ACTIVE = 29
IFLA_BOND_MISSED_MAX = 30
IFLA_BOND_NS_IP6_TARGET = 31

# Address attributes (IFA_*).
IFA_UNSPEC = 0
IFA_ADDRESS = 1
IFA_LOCAL = 2
IFA_LABEL = 3
IFA_BROADCAST = 4
IFA_ANYCAST = 5
IFA_CACHEINFO = 6
IFA_MULTICAST = 7
IFA_FLAGS = 8


def nl_mgrp(group: int) -> int:
    """Return the legacy bind mask for a multicast group number."""
    if group < 0:
        raise ValueError(f"invalid multicast group {group}")
    if group > 31:
        raise ValueError(
            "groups above 31 need a socket membership, not a bind mask"
        )
    if group == 0:
        return 0
    return 1 << (group - 1)