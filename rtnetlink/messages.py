"""Netlink route messages, their attributes and their wire format."""

from __future__ import annotations

import os
import struct
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Iterable, Union

from .constants import NLA_F_NESTED, NLA_F_NET_BYTEORDER, NLA_TYPE_MASK
from .errors import NetlinkError, UnexpectedMessageError

_NLMSG_HEADER = struct.Struct("=IHHII")
_NLA_HEADER = struct.Struct("=HH")
_IFINFO = struct.Struct("=BxHIII")
_IFADDR = struct.Struct("=BBBBI")
_ERROR_CODE = struct.Struct("=i")


def _align(length: int) -> int:
    return (length + 3) & ~3


def _pack(layout: struct.Struct, *values: int) -> bytes:
    try:
        return layout.pack(*values)
    except struct.error as exc:
        raise ValueError(str(exc)) from None


def _pack_one(fmt: str, value: int) -> bytes:
    return _pack(struct.Struct(fmt), value)


def _unpack_one(fmt: str, data: bytes) -> int:
    layout = struct.Struct(fmt)
    if len(data) != layout.size:
        raise ValueError(
            f"expected {layout.size} bytes of attribute data, got {len(data)}"
        )
    return layout.unpack(data)[0]


class MessageType(IntEnum):
    """Netlink control and rtnetlink link/address message types."""

    NOOP = 1
    ERROR = 2
    DONE = 3
    OVERRUN = 4
    NEW_LINK = 16
    DEL_LINK = 17
    GET_LINK = 18
    SET_LINK = 19
    NEW_ADDRESS = 20
    DEL_ADDRESS = 21
    GET_ADDRESS = 22
    NEW_LINK_PROP = 108
    DEL_LINK_PROP = 109
    GET_LINK_PROP = 110


_LINK_TYPES = frozenset(
    {
        MessageType.NEW_LINK,
        MessageType.DEL_LINK,
        MessageType.GET_LINK,
        MessageType.SET_LINK,
        MessageType.NEW_LINK_PROP,
        MessageType.DEL_LINK_PROP,
        MessageType.GET_LINK_PROP,
    }
)
_ADDRESS_TYPES = frozenset(
    {MessageType.NEW_ADDRESS, MessageType.DEL_ADDRESS, MessageType.GET_ADDRESS}
)


class InfoKind(str, Enum):
    """Link kinds carried in the IFLA_INFO_KIND attribute."""

    DUMMY = "dummy"
    IFB = "ifb"
    BRIDGE = "bridge"
    TUN = "tun"
    NLMON = "nlmon"
    VLAN = "vlan"
    VETH = "veth"
    VXLAN = "vxlan"
    BOND = "bond"
    IPVLAN = "ipvlan"
    MACVLAN = "macvlan"
    MACVTAP = "macvtap"
    GRETAP = "gretap"
    IP6GRETAP = "ip6gretap"
    IPIP = "ipip"
    SIT = "sit"
    GRE = "gre"
    IP6GRE = "ip6gre"
    VTI = "vti"
    VRF = "vrf"
    GTP = "gtp"
    IPOIB = "ipoib"
    WIREGUARD = "wireguard"
    XFRM = "xfrm"


@dataclass(frozen=True)
class Nla:
    """A netlink attribute: a type number, flag bits and raw data."""

    kind: int
    data: bytes = b""
    flags: int = 0

    def __post_init__(self) -> None:
        if not 0 <= self.kind <= NLA_TYPE_MASK:
            raise ValueError(f"attribute type {self.kind} out of range")
        if self.flags & ~(NLA_F_NESTED | NLA_F_NET_BYTEORDER):
            raise ValueError(f"invalid attribute flags {self.flags:#x}")
        object.__setattr__(self, "data", bytes(self.data))

    @classmethod
    def u8(cls, kind: int, value: int) -> Nla:
        return cls(kind, _pack_one("=B", value))

    @classmethod
    def u16(cls, kind: int, value: int) -> Nla:
        return cls(kind, _pack_one("=H", value))

    @classmethod
    def u16_be(cls, kind: int, value: int) -> Nla:
        """An unsigned 16-bit value in network byte order."""
        return cls(kind, _pack_one("!H", value))

    @classmethod
    def u32(cls, kind: int, value: int) -> Nla:
        return cls(kind, _pack_one("=I", value))

    @classmethod
    def i32(cls, kind: int, value: int) -> Nla:
        return cls(kind, _pack_one("=i", value))

    @classmethod
    def string(cls, kind: int, value: str) -> Nla:
        """A NUL-terminated string attribute."""
        if isinstance(value, Enum):
            value = value.value
        return cls(kind, value.encode() + b"\0")

    @classmethod
    def nested(
        cls, kind: int, children: Iterable[Nla], *, flagged: bool = False
    ) -> Nla:
        """An attribute whose data is a list of attributes."""
        data = b"".join(child.encode() for child in children)
        return cls(kind, data, NLA_F_NESTED if flagged else 0)

    def as_u8(self) -> int:
        return _unpack_one("=B", self.data)

    def as_u16(self) -> int:
        return _unpack_one("=H", self.data)

    def as_u16_be(self) -> int:
        return _unpack_one("!H", self.data)

    def as_u32(self) -> int:
        return _unpack_one("=I", self.data)

    def as_i32(self) -> int:
        return _unpack_one("=i", self.data)

    def as_str(self) -> str:
        return self.data.split(b"\0", 1)[0].decode("utf-8", errors="replace")

    def children(self) -> list[Nla]:
        """Parse the data as nested attributes."""
        return _decode_nlas(self.data)

    def encode(self) -> bytes:
        length = _NLA_HEADER.size + len(self.data)
        if length > 0xFFFF:
            raise ValueError("attribute too long")
        header = _pack(_NLA_HEADER, length, self.kind | self.flags)
        return header + self.data + b"\0" * (_align(length) - length)


def _encode_nlas(nlas: Iterable[Nla]) -> bytes:
    return b"".join(nla.encode() for nla in nlas)


def _decode_nlas(data: bytes) -> list[Nla]:
    nlas = []
    offset = 0
    while offset + _NLA_HEADER.size <= len(data):
        length, raw_kind = _NLA_HEADER.unpack_from(data, offset)
        if length < _NLA_HEADER.size or offset + length > len(data):
            raise ValueError(f"malformed attribute at offset {offset}")
        nlas.append(
            Nla(
                raw_kind & NLA_TYPE_MASK,
                data[offset + _NLA_HEADER.size : offset + length],
                raw_kind & (NLA_F_NESTED | NLA_F_NET_BYTEORDER),
            )
        )
        offset += _align(length)
    return nlas


@dataclass(frozen=True)
class ErrorMessage:
    """An NLMSG_ERROR payload; code 0 is an acknowledgement."""

    code: int
    header: bytes = b""

    def __post_init__(self) -> None:
        object.__setattr__(self, "header", bytes(self.header))

    def __str__(self) -> str:
        errno = -self.code
        return f"{os.strerror(errno)} (os error {errno})"

    def encode(self) -> bytes:
        return _pack(_ERROR_CODE, self.code) + self.header

    @classmethod
    def decode(cls, data: bytes) -> ErrorMessage:
        if len(data) < _ERROR_CODE.size:
            raise ValueError("error message too short")
        (code,) = _ERROR_CODE.unpack_from(data)
        return cls(code, data[_ERROR_CODE.size :])


@dataclass
class LinkHeader:
    """The ifinfomsg header of a link message."""

    interface_family: int = 0
    link_layer_type: int = 0
    index: int = 0
    flags: int = 0
    change_mask: int = 0


@dataclass
class LinkMessage:
    """A link message: an ifinfomsg header followed by attributes."""

    header: LinkHeader = field(default_factory=LinkHeader)
    nlas: list[Nla] = field(default_factory=list)

    def encode(self) -> bytes:
        h = self.header
        head = _pack(
            _IFINFO,
            h.interface_family,
            h.link_layer_type,
            h.index,
            h.flags,
            h.change_mask,
        )
        return head + _encode_nlas(self.nlas)

    @classmethod
    def decode(cls, data: bytes) -> LinkMessage:
        if len(data) < _IFINFO.size:
            raise ValueError("link message too short")
        family, ll_type, index, flags, change = _IFINFO.unpack_from(data)
        header = LinkHeader(family, ll_type, index, flags, change)
        return cls(header, _decode_nlas(data[_IFINFO.size :]))


@dataclass
class AddressHeader:
    """The ifaddrmsg header of an address message."""

    family: int = 0
    prefix_len: int = 0
    flags: int = 0
    scope: int = 0
    index: int = 0


@dataclass
class AddressMessage:
    """An address message: an ifaddrmsg header followed by attributes."""

    header: AddressHeader = field(default_factory=AddressHeader)
    nlas: list[Nla] = field(default_factory=list)

    def encode(self) -> bytes:
        h = self.header
        head = _pack(_IFADDR, h.family, h.prefix_len, h.flags, h.scope, h.index)
        return head + _encode_nlas(self.nlas)

    @classmethod
    def decode(cls, data: bytes) -> AddressMessage:
        if len(data) < _IFADDR.size:
            raise ValueError("address message too short")
        family, prefix_len, flags, scope, index = _IFADDR.unpack_from(data)
        header = AddressHeader(family, prefix_len, flags, scope, index)
        return cls(header, _decode_nlas(data[_IFADDR.size :]))


Payload = Union[LinkMessage, AddressMessage, ErrorMessage, bytes]


@dataclass
class NetlinkHeader:
    """The nlmsghdr header; length is filled in when a message is decoded."""

    message_type: int = 0
    flags: int = 0
    sequence_number: int = 0
    port_number: int = 0
    length: int = field(default=0, compare=False)


def _message_type(value: int) -> int:
    try:
        return MessageType(value)
    except ValueError:
        return value


def _decode_payload(message_type: int, body: bytes) -> Payload:
    if message_type == MessageType.ERROR:
        return ErrorMessage.decode(body)
    if message_type in _LINK_TYPES:
        return LinkMessage.decode(body)
    if message_type in _ADDRESS_TYPES:
        return AddressMessage.decode(body)
    return body


@dataclass
class NetlinkMessage:
    """A netlink message: header and payload."""

    header: NetlinkHeader
    payload: Payload = b""

    def encode(self) -> bytes:
        payload = self.payload
        body = bytes(payload) if isinstance(payload, (bytes, bytearray)) else payload.encode()
        length = _NLMSG_HEADER.size + len(body)
        h = self.header
        head = _pack(
            _NLMSG_HEADER,
            length,
            int(h.message_type),
            h.flags,
            h.sequence_number,
            h.port_number,
        )
        return head + body + b"\0" * (_align(length) - length)

    @classmethod
    def decode(cls, data: bytes) -> NetlinkMessage:
        """Decode the first message in data; header.length tells its size."""
        data = bytes(data)
        if len(data) < _NLMSG_HEADER.size:
            raise ValueError("buffer too short for a netlink header")
        length, mtype, flags, seq, port = _NLMSG_HEADER.unpack_from(data)
        if length < _NLMSG_HEADER.size or length > len(data):
            raise ValueError(f"invalid netlink message length {length}")
        message_type = _message_type(mtype)
        header = NetlinkHeader(message_type, flags, seq, port, length)
        body = data[_NLMSG_HEADER.size : length]
        return cls(header, _decode_payload(message_type, body))


def expect_payload(
    message: NetlinkMessage, message_type: int
) -> LinkMessage | AddressMessage:
    """Return the payload of a reply of the given type or raise."""
    payload = message.payload
    if isinstance(payload, ErrorMessage) and payload.code != 0:
        raise NetlinkError(payload)
    if message.header.message_type == message_type and isinstance(
        payload, (LinkMessage, AddressMessage)
    ):
        return payload
    raise UnexpectedMessageError(message)


def check_ack(message: NetlinkMessage) -> bool:
    """Raise NetlinkError on an error reply; return whether it is an ack."""
    payload = message.payload
    if isinstance(payload, ErrorMessage):
        if payload.code != 0:
            raise NetlinkError(payload)
        return True
    return False