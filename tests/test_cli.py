import ipaddress
import os
from collections import deque
from types import SimpleNamespace
from unittest.mock import patch

import pytest

from rtnetlink.cli import main
from rtnetlink.constants import (
    AF_INET,
    IFA_ADDRESS,
    IFA_LOCAL,
    IFF_UP,
    IFLA_AF_SPEC,
    IFLA_ALT_IFNAME,
    IFLA_BOND_MIIMON,
    IFLA_BOND_MODE,
    IFLA_IFNAME,
    IFLA_INFO_DATA,
    IFLA_INFO_KIND,
    IFLA_LINK,
    IFLA_LINKINFO,
    IFLA_MACVLAN_MODE,
    IFLA_PROP_LIST,
    IFLA_VXLAN_ID,
    IFLA_VXLAN_LINK,
    IFLA_VXLAN_PORT,
    NLM_F_DUMP,
    NLM_F_MULTIPART,
    RTMGRP_IPV4_ROUTE,
    RTMGRP_IPV6_ROUTE,
)
from rtnetlink.messages import (
    AddressHeader,
    AddressMessage,
    ErrorMessage,
    LinkHeader,
    LinkMessage,
    MessageType,
    NetlinkHeader,
    NetlinkMessage,
    Nla,
)


class FakeKernel:
    """A stand-in socket that answers requests like a small kernel."""

    def __init__(self):
        self.links = {
            1: LinkMessage(LinkHeader(index=1), [Nla.string(IFLA_IFNAME, "lo")]),
            2: LinkMessage(
                LinkHeader(index=2),
                [
                    Nla.string(IFLA_IFNAME, "eth0"),
                    Nla.nested(IFLA_AF_SPEC, [Nla.u16(1, 0)]),
                    Nla.nested(
                        IFLA_PROP_LIST,
                        [Nla.string(IFLA_ALT_IFNAME, "uplink")],
                        flagged=True,
                    ),
                ],
            ),
        }
        self.addresses = [
            AddressMessage(
                AddressHeader(family=AF_INET, prefix_len=8, index=1),
                [Nla(IFA_ADDRESS, ipaddress.ip_address("127.0.0.1").packed)],
            ),
            AddressMessage(
                AddressHeader(family=AF_INET, prefix_len=24, index=2),
                [Nla(IFA_ADDRESS, ipaddress.ip_address("10.0.0.5").packed)],
            ),
        ]
        self.requests = []
        self.error_code = 0
        self.inbox = deque()
        self.bound = None
        self.closed = False

    def setblocking(self, flag):
        pass

    def bind(self, address):
        self.bound = address

    def close(self):
        self.closed = True

    def recv(self, size):
        if not self.inbox:
            raise ConnectionResetError("no more data")
        return self.inbox.popleft()

    def send(self, data):
        request = NetlinkMessage.decode(data)
        self.requests.append(request)
        replies = list(self._answer(request))
        for reply in replies:
            reply.header.sequence_number = request.header.sequence_number
        self.inbox.append(b"".join(reply.encode() for reply in replies))
        return len(data)

    def _dump(self, message_type, items):
        for item in items:
            yield NetlinkMessage(NetlinkHeader(message_type, NLM_F_MULTIPART), item)
        yield NetlinkMessage(
            NetlinkHeader(MessageType.DONE, NLM_F_MULTIPART), b"\0\0\0\0"
        )

    def _answer(self, request):
        mtype = request.header.message_type
        payload = request.payload
        dump = request.header.flags & NLM_F_DUMP == NLM_F_DUMP
        if mtype == MessageType.GET_LINK:
            if dump:
                yield from self._dump(MessageType.NEW_LINK, self.links.values())
                return
            names = [nla.as_str() for nla in payload.nlas if nla.kind == IFLA_IFNAME]
            for index, link in self.links.items():
                found_name = next(
                    nla.as_str() for nla in link.nlas if nla.kind == IFLA_IFNAME
                )
                if index == payload.header.index or found_name in names:
                    yield NetlinkMessage(NetlinkHeader(MessageType.NEW_LINK), link)
                    return
            yield NetlinkMessage(NetlinkHeader(MessageType.ERROR), ErrorMessage(-19))
        elif mtype == MessageType.GET_ADDRESS:
            yield from self._dump(MessageType.NEW_ADDRESS, self.addresses)
        else:
            yield NetlinkMessage(
                NetlinkHeader(MessageType.ERROR), ErrorMessage(self.error_code)
            )

    def sent(self, message_type):
        return [r for r in self.requests if r.header.message_type == message_type]


@pytest.fixture
def kernel():
    fake_kernel = FakeKernel()
    fake_socket = SimpleNamespace(
        AF_NETLINK=16, SOCK_RAW=3, socket=lambda *args: fake_kernel
    )
    with patch("rtnetlink.connection.socket", fake_socket):
        yield fake_kernel


def _link_info(message):
    info = next(nla for nla in message.nlas if nla.kind == IFLA_LINKINFO)
    children = info.children()
    kind = next(c.as_str() for c in children if c.kind == IFLA_INFO_KIND)
    data = [c for c in children if c.kind == IFLA_INFO_DATA]
    return kind, (data[0].children() if data else None)


def _nla(nlas, kind):
    return next(nla for nla in nlas if nla.kind == kind)


def test_add_address(kernel):
    assert main(["add-address", "eth0", "10.1.2.3/24"]) == 0
    (request,) = kernel.sent(MessageType.NEW_ADDRESS)
    payload = request.payload
    assert payload.header.index == 2
    assert payload.header.prefix_len == 24
    local = _nla(payload.nlas, IFA_LOCAL)
    assert local.data == ipaddress.ip_address("10.1.2.3").packed


def test_add_address_rejects_invalid_address(kernel, capsys):
    with pytest.raises(SystemExit) as excinfo:
        main(["add-address", "eth0", "not-an-ip"])
    assert excinfo.value.code == 2
    assert "invalid address" in capsys.readouterr().err


def test_create_bridge(kernel):
    assert main(["create-bridge"]) == 0
    (request,) = kernel.sent(MessageType.NEW_LINK)
    assert request.payload.nlas[0].as_str() == "my-bridge-1"
    kind, data = _link_info(request.payload)
    assert kind == "bridge"
    assert data is None


def test_create_veth_names_main_message_after_peer(kernel):
    assert main(["create-veth"]) == 0
    (request,) = kernel.sent(MessageType.NEW_LINK)
    assert request.payload.nlas[0].as_str() == "veth-rs-2"
    kind, data = _link_info(request.payload)
    assert kind == "veth"
    peer = LinkMessage.decode(data[0].data)
    assert peer.nlas[0].as_str() == "veth-rs-1"


def test_create_bond(kernel):
    assert main(["create-bond"]) == 0
    (request,) = kernel.sent(MessageType.NEW_LINK)
    assert request.payload.header.flags & IFF_UP
    assert request.payload.nlas[0].as_str() == "my-bond"
    kind, data = _link_info(request.payload)
    assert kind == "bond"
    assert _nla(data, IFLA_BOND_MODE).as_u8() == 1
    assert _nla(data, IFLA_BOND_MIIMON).as_u32() == 100


def test_create_macvlan(kernel):
    assert main(["create-macvlan", "eth0"]) == 0
    (request,) = kernel.sent(MessageType.NEW_LINK)
    nlas = request.payload.nlas
    assert nlas[0].as_str() == "test_macvlan"
    assert _nla(nlas, IFLA_LINK).as_u32() == 2
    kind, data = _link_info(request.payload)
    assert kind == "macvlan"
    assert _nla(data, IFLA_MACVLAN_MODE).as_u32() == 4


def test_create_macvtap(kernel):
    assert main(["create-macvtap", "eth0"]) == 0
    (request,) = kernel.sent(MessageType.NEW_LINK)
    assert request.payload.nlas[0].as_str() == "test_macvtap"
    kind, _ = _link_info(request.payload)
    assert kind == "macvtap"


def test_missing_link_reports_kernel_error(kernel, capsys):
    assert main(["create-macvlan", "nosuch"]) == 1
    assert "Received a netlink error message" in capsys.readouterr().err
    assert kernel.sent(MessageType.NEW_LINK) == []


def test_create_vxlan(kernel):
    assert main(["create-vxlan", "eth0"]) == 0
    (request,) = kernel.sent(MessageType.NEW_LINK)
    kind, data = _link_info(request.payload)
    assert kind == "vxlan"
    assert _nla(data, IFLA_VXLAN_ID).as_u32() == 10
    assert _nla(data, IFLA_VXLAN_LINK).as_u32() == 2
    assert _nla(data, IFLA_VXLAN_PORT).as_u16_be() == 4789


def test_del_link(kernel):
    assert main(["del-link", "eth0"]) == 0
    (request,) = kernel.sent(MessageType.DEL_LINK)
    assert request.payload.header.index == 2


def test_flush_addresses_deletes_only_link_addresses(kernel):
    assert main(["flush-addresses", "lo"]) == 0
    deleted = kernel.sent(MessageType.DEL_ADDRESS)
    assert [r.payload.header.index for r in deleted] == [1]
    assert deleted[0].payload.nlas == kernel.addresses[0].nlas


def test_get_address(kernel, capsys):
    assert main(["get-address"]) == 0
    lines = capsys.readouterr().out.splitlines()
    assert lines[0] == 'dumping address for link "lo"'
    assert len(lines) == 2


def test_get_links(kernel, capsys):
    assert main(["get-links"]) == 0
    out = capsys.readouterr().out
    assert "found link with index 1 (name = lo)" in out
    assert "found link lo" in out
    assert "found link 2 (eth0)" in out
    assert "found interface 2 with AfSpecBridge data" in out
    assert "found interface 1 " not in out


def test_set_link_down(kernel):
    assert main(["set-link-down", "eth0"]) == 0
    (request,) = kernel.sent(MessageType.SET_LINK)
    header = request.payload.header
    assert header.index == 2
    assert header.change_mask & IFF_UP
    assert header.flags & IFF_UP == 0


def test_kernel_refusal_is_reported(kernel, capsys):
    kernel.error_code = -1
    assert main(["set-link-down", "eth0"]) == 1
    assert os.strerror(1) in capsys.readouterr().err


def test_altname_add(kernel):
    assert main(["altname", "eth0", "add", "first", "second"]) == 0
    (request,) = kernel.sent(MessageType.NEW_LINK_PROP)
    props = _nla(request.payload.nlas, IFLA_PROP_LIST).children()
    assert [p.as_str() for p in props] == ["first", "second"]


def test_altname_del(kernel):
    assert main(["altname", "eth0", "del", "first"]) == 0
    (request,) = kernel.sent(MessageType.DEL_LINK_PROP)
    assert request.payload.header.index == 2


def test_altname_show(kernel, capsys):
    assert main(["altname", "eth0", "show"]) == 0
    assert capsys.readouterr().out.splitlines() == ["altname: uplink"]


def test_listen_prints_notifications(kernel, capsys):
    notification = NetlinkMessage(NetlinkHeader(24), b"\x02\x00\x00\x00")
    kernel.inbox.append(notification.encode())
    assert main(["listen"]) == 0
    assert kernel.bound == (0, RTMGRP_IPV4_ROUTE | RTMGRP_IPV6_ROUTE)
    out = capsys.readouterr().out
    assert out.count("Route change message - ") == 1
    assert kernel.closed


def test_no_netlink_support(capsys):
    fake_socket = SimpleNamespace(SOCK_RAW=3)
    with patch("rtnetlink.connection.socket", fake_socket):
        assert main(["get-links"]) == 1
    assert "cannot open a netlink socket" in capsys.readouterr().err