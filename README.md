# rtnetlink

This is an asyncio library for managing Linux network links and IP addresses
over a routing netlink socket. It covers much of what `ip link` and
`ip address` do. It has no dependencies outside the standard library.

## Installation

```
pip install .
```

To install the test tools as well:

```
pip install ".[test]"
```

## Library usage

```python
import asyncio

from rtnetlink.connection import new_connection


async def run():
    connection, handle = new_connection()
    with connection:
        # Look up a link by name
        async for link in handle.link().get().match_name("lo").execute():
            print(link.header.index)

        # Add an address to link 2
        await handle.address().add(2, "192.0.2.10", 24).execute()

        # Create a bridge and a veth pair
        await handle.link().add().bridge("my-bridge-1").execute()
        await handle.link().add().veth("veth-a", "veth-b").execute()

        # Bring a link down
        await handle.link().set(2).down().execute()


asyncio.run(run())
```

`new_connection()` opens the socket. It returns a `Connection` and a `Handle`.
If the platform has no netlink sockets, it raises `OSError`. A `Connection` is
a context manager, and it closes its socket on exit.

You build every request with a chain of method calls and then run it with
`execute()`:

- `handle.link()` returns a `LinkHandle`, which provides:
  - `get()`, with `match_index`, `match_name` and `set_filter_mask`
  - `add()`
  - `set(index)`, with `up`, `down`, `promiscuous`, `arp`, `name`, `mtu`,
    `address`, `master`, `nomaster`, `setns_by_pid` and `setns_by_fd`
  - `delete(index)`
  - `property_add(index)` and `property_del(index)`, with `alt_ifname`
- `handle.address()` returns an `AddressHandle`, which provides:
  - `get()`, with `set_link_index_filter`, `set_prefix_length_filter` and
    `set_address_filter`
  - `add(index, address, prefix_len)`, with `replace`
  - `delete(message)`

Running a `get` request gives an async iterator of `LinkMessage` or
`AddressMessage` objects. Any other request returns once the kernel
acknowledges it. An error reply from the kernel raises
`rtnetlink.errors.NetlinkError`. A reply of an unexpected type raises
`UnexpectedMessageError`. Every exception the package raises derives from
`RtnetlinkError`.

`LinkAddRequest` has helpers for `dummy`, `veth`, `vlan`, `macvlan`,
`macvtap`, `xfrmtun`, `bridge`, `bond` and `vxlan`. The last two return
builders with their own options:

```python
await (
    handle.link().add().bond("my-bond")
    .mode(1).miimon(100).min_links(2)
    .arp_ip_target(["192.0.2.1"])
    .up()
    .execute()
)
await handle.link().add().vxlan("vxlan0", 10).link(2).port(4789).up().execute()
```

For any other link kind, edit `request.message` directly (a `LinkMessage` with
a header and a list of `Nla` attributes). Then add the kind with
`request.link_info(kind, data)`.

`rtnetlink.messages` holds the wire format. `NetlinkMessage.encode()` and
`NetlinkMessage.decode(data)` convert between messages and bytes. The protocol
numbers are in `rtnetlink.constants`, together with `nl_mgrp(group)`, which
turns a multicast group number into a bind mask.

## Command line

The package installs an `rtnetlink` command. Most of its actions need root
privileges.

```
rtnetlink get-links [--index N] [--name NAME]
rtnetlink get-address [LINK]
rtnetlink add-address LINK ADDRESS/PREFIX
rtnetlink flush-addresses LINK
rtnetlink create-bridge [NAME]
rtnetlink create-veth [NAME] [PEER]
rtnetlink create-bond [NAME]
rtnetlink create-macvlan LINK
rtnetlink create-macvtap LINK
rtnetlink create-vxlan LINK
rtnetlink del-link LINK
rtnetlink set-link-down LINK
rtnetlink altname LINK show
rtnetlink altname LINK add ALTNAME [ALTNAME ...]
rtnetlink altname LINK del ALTNAME [ALTNAME ...]
rtnetlink listen
```

Notes on some of the actions:

- `create-macvlan` and `create-macvtap` create `test_macvlan` or
  `test_macvtap` in bridge mode on top of LINK.
- `create-vxlan` creates `vxlan0`, with VNI 10 and port 4789, on top of LINK.
- `create-bond` uses a fixed set of bonding options.
- `listen` prints IPv4 and IPv6 routing change notifications until it is
  interrupted.

Run `rtnetlink --help` to see every action and its arguments.

## What it does not do

The package manages links and addresses only. It does not manage routes,
routing rules, neighbour (ARP/NDP) tables, traffic control (qdiscs, classes,
filters) or network namespaces. It also cannot decode most attributes into
named fields. Attributes stay as `Nla` objects that carry a type number and
raw bytes.

## Running the tests

```
pytest
```