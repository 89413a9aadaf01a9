import pytest

from rtnetlink.constants import (
    IFF_UP,
    IFLA_BOND_MIIMON,
    IFLA_BOND_MODE,
    IFLA_IFNAME,
    IFLA_INFO_DATA,
    IFLA_INFO_KIND,
    IFLA_LINK,
    IFLA_LINKINFO,
    IFLA_MACVLAN_MODE,
    IFLA_VLAN_ID,
    IFLA_VXLAN_ID,
    IFLA_VXLAN_LINK,
    IFLA_XFRM_IF_ID,
    NLM_F_ACK,
    NLM_F_CREATE,
    NLM_F_EXCL,
    NLM_F_REPLACE,
    NLM_F_REQUEST,
    VETH_INFO_PEER,
)
from rtnetlink.errors import NetlinkError
from rtnetlink.link_add import LinkAddRequest
from rtnetlink.link_kinds import BondAddRequest, VxlanAddRequest
from rtnetlink.messages import (
    ErrorMessage,
    InfoKind,
    LinkMessage,
    MessageType,
    NetlinkHeader,
    NetlinkMessage,
    Nla,
)

ACK = NetlinkMessage(NetlinkHeader(MessageType.ERROR), ErrorMessage(0))


class RecordingHandle:
    def __init__(self, replies=None):
        self.requests = []
        self.replies = [ACK] if replies is None else replies

    def request(self, message):
        self.requests.append(message)
        return self._replay()

    async def _replay(self):
        for reply in self.replies:
            yield reply


def find(nlas, kind):
    return next(nla for nla in nlas if nla.kind == kind)


def info_of(message):
    return find(message.nlas, IFLA_LINKINFO).children()


def test_dummy_builds_name_kind_and_up():
    request = LinkAddRequest(RecordingHandle()).dummy("dummy0")
    assert [nla.kind for nla in request.message.nlas] == [IFLA_IFNAME, IFLA_LINKINFO]
    assert find(request.message.nlas, IFLA_IFNAME).as_str() == "dummy0"
    info = info_of(request.message)
    assert info == [Nla.string(IFLA_INFO_KIND, InfoKind.DUMMY)]
    assert request.message.header.flags == IFF_UP
    assert request.message.header.change_mask == IFF_UP


def test_veth_puts_peer_name_in_main_message():
    request = LinkAddRequest(RecordingHandle()).veth("veth-rs-1", "veth-rs-2")
    assert find(request.message.nlas, IFLA_IFNAME).as_str() == "veth-rs-2"
    kind, data = info_of(request.message)
    assert kind.as_str() == InfoKind.VETH.value
    assert data.kind == IFLA_INFO_DATA
    (peer_nla,) = data.children()
    assert peer_nla.kind == VETH_INFO_PEER
    peer = LinkMessage.decode(peer_nla.data)
    assert peer.nlas == [Nla.string(IFLA_IFNAME, "veth-rs-1")]
    assert request.message.header.flags == IFF_UP


def test_vlan_attribute_order_and_values():
    request = LinkAddRequest(RecordingHandle()).vlan("my-vlan", 6, 100)
    kinds = [nla.kind for nla in request.message.nlas]
    assert kinds == [IFLA_IFNAME, IFLA_LINKINFO, IFLA_LINK]
    assert find(request.message.nlas, IFLA_LINK).as_u32() == 6
    kind, data = info_of(request.message)
    assert kind.as_str() == InfoKind.VLAN.value
    assert data.children() == [Nla.u16(IFLA_VLAN_ID, 100)]


@pytest.mark.parametrize(
    "method, kind",
    [("macvlan", InfoKind.MACVLAN), ("macvtap", InfoKind.MACVTAP)],
)
def test_macvlan_and_macvtap(method, kind):
    request = getattr(LinkAddRequest(RecordingHandle()), method)("mv0", 3, 4)
    assert find(request.message.nlas, IFLA_LINK).as_u32() == 3
    info_kind, data = info_of(request.message)
    assert info_kind.as_str() == kind.value
    assert data.children() == [Nla.u32(IFLA_MACVLAN_MODE, 4)]
    assert request.message.header.flags == IFF_UP


def test_xfrmtun():
    request = LinkAddRequest(RecordingHandle()).xfrmtun("xfrm0", 7)
    kind, data = info_of(request.message)
    assert kind.as_str() == InfoKind.XFRM.value
    assert data.children() == [Nla.u32(IFLA_XFRM_IF_ID, 7)]


def test_bridge_names_twice_and_stays_down():
    request = LinkAddRequest(RecordingHandle()).bridge("my-bridge-1")
    names = [nla.as_str() for nla in request.message.nlas if nla.kind == IFLA_IFNAME]
    assert names == ["my-bridge-1", "my-bridge-1"]
    assert info_of(request.message) == [Nla.string(IFLA_INFO_KIND, InfoKind.BRIDGE)]
    assert request.message.header.flags == 0


def test_link_info_with_empty_data_keeps_data_attribute():
    request = LinkAddRequest(RecordingHandle()).link_info(InfoKind.BOND, [])
    info = info_of(request.message)
    assert [nla.kind for nla in info] == [IFLA_INFO_KIND, IFLA_INFO_DATA]
    assert info[1].data == b""


@pytest.mark.asyncio
async def test_execute_sends_new_link_with_exclusive_flags():
    handle = RecordingHandle()
    await LinkAddRequest(handle).dummy("dummy0").execute()
    (sent,) = handle.requests
    assert sent.header.message_type == MessageType.NEW_LINK
    assert sent.header.flags == NLM_F_REQUEST | NLM_F_ACK | NLM_F_EXCL | NLM_F_CREATE
    decoded = NetlinkMessage.decode(sent.encode())
    assert decoded.payload == sent.payload


@pytest.mark.asyncio
async def test_replace_switches_flag():
    handle = RecordingHandle()
    await LinkAddRequest(handle).dummy("dummy0").replace().execute()
    flags = handle.requests[0].header.flags
    assert flags == NLM_F_REQUEST | NLM_F_ACK | NLM_F_REPLACE | NLM_F_CREATE
    assert (flags & NLM_F_EXCL) == 0


@pytest.mark.asyncio
async def test_execute_raises_on_error_reply():
    error = NetlinkMessage(NetlinkHeader(MessageType.ERROR), ErrorMessage(-17))
    handle = RecordingHandle([error])
    with pytest.raises(NetlinkError) as info:
        await LinkAddRequest(handle).dummy("dummy0").execute()
    assert info.value.error.code == -17


@pytest.mark.asyncio
async def test_bond_request_sends_bond_options():
    handle = RecordingHandle()
    bond = LinkAddRequest(handle).bond("my-bond")
    assert isinstance(bond, BondAddRequest)
    await bond.mode(1).miimon(100).up().execute()
    payload = handle.requests[0].payload
    assert find(payload.nlas, IFLA_IFNAME).as_str() == "my-bond"
    assert payload.header.flags == IFF_UP
    kind, data = info_of(payload)
    assert kind.as_str() == InfoKind.BOND.value
    assert data.children() == [Nla.u8(IFLA_BOND_MODE, 1), Nla.u32(IFLA_BOND_MIIMON, 100)]


@pytest.mark.asyncio
async def test_vxlan_request_starts_with_id():
    handle = RecordingHandle()
    vxlan = LinkAddRequest(handle).vxlan("vxlan0", 10)
    assert isinstance(vxlan, VxlanAddRequest)
    await vxlan.link(2).execute()
    payload = handle.requests[0].payload
    kind, data = info_of(payload)
    assert kind.as_str() == InfoKind.VXLAN.value
    assert data.children() == [Nla.u32(IFLA_VXLAN_ID, 10), Nla.u32(IFLA_VXLAN_LINK, 2)]