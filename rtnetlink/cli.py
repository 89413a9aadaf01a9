"""Command line front end for common link and address operations."""

from __future__ import annotations

import argparse
import asyncio
import ipaddress
import sys
from contextlib import aclosing
from typing import AsyncIterator, Optional, TypeVar

from .connection import Connection, new_connection
from .constants import (
    AF_BRIDGE,
    IFLA_AF_SPEC,
    IFLA_ALT_IFNAME,
    IFLA_IFNAME,
    IFLA_PROP_LIST,
    RTEXT_FILTER_BRVLAN,
    RTMGRP_IPV4_ROUTE,
    RTMGRP_IPV6_ROUTE,
)
from .errors import RequestFailedError, RtnetlinkError
from .handle import Handle
from .messages import LinkMessage

T = TypeVar("T")

# Bridge mode, as used for macvlan and macvtap links.
_MACVLAN_MODE_BRIDGE = 4


def _eprint(*values: object) -> None:
    print(*values, file=sys.stderr)


def _interface(text: str) -> ipaddress.IPv4Interface | ipaddress.IPv6Interface:
    try:
        return ipaddress.ip_interface(text)
    except ValueError:
        raise argparse.ArgumentTypeError("invalid address") from None


async def _first(stream: AsyncIterator[T]) -> Optional[T]:
    """Return the first item of an async stream, or None if it is empty."""
    async with aclosing(stream) as items:
        async for item in items:
            return item
    return None


def _link_name(link: LinkMessage) -> Optional[str]:
    return next(
        (nla.as_str() for nla in link.nlas if nla.kind == IFLA_IFNAME), None
    )


async def _find_link(handle: Handle, name: str) -> Optional[LinkMessage]:
    return await _first(handle.link().get().match_name(name).execute())


async def _add_address(connection: Connection, handle: Handle, args) -> None:
    link = await _find_link(handle, args.link)
    if link is None:
        return
    ip = args.address
    await handle.address().add(
        link.header.index, ip.ip, ip.network.prefixlen
    ).execute()


async def _create_bond(connection: Connection, handle: Handle, args) -> None:
    await (
        handle.link()
        .add()
        .bond(args.name)
        .mode(1)
        .miimon(100)
        .updelay(100)
        .downdelay(100)
        .min_links(2)
        .arp_ip_target(["6.6.7.7", "8.8.9.10"])
        .ns_ip6_target(["fd01::1", "fd02::2"])
        .up()
        .execute()
    )


async def _create_bridge(connection: Connection, handle: Handle, args) -> None:
    await handle.link().add().bridge(args.name).execute()


async def _create_veth(connection: Connection, handle: Handle, args) -> None:
    await handle.link().add().veth(args.name, args.peer).execute()


async def _create_macvlan(connection: Connection, handle: Handle, args) -> None:
    link = await _find_link(handle, args.link)
    if link is None:
        print(f"no link {args.link} found")
        return
    await handle.link().add().macvlan(
        "test_macvlan", link.header.index, _MACVLAN_MODE_BRIDGE
    ).execute()


async def _create_macvtap(connection: Connection, handle: Handle, args) -> None:
    link = await _find_link(handle, args.link)
    if link is None:
        print(f"no link {args.link} found")
        return
    await handle.link().add().macvtap(
        "test_macvtap", link.header.index, _MACVLAN_MODE_BRIDGE
    ).execute()


async def _create_vxlan(connection: Connection, handle: Handle, args) -> None:
    link = await _find_link(handle, args.link)
    if link is None:
        print(f"no link {args.link} found")
        return
    await (
        handle.link()
        .add()
        .vxlan("vxlan0", 10)
        .link(link.header.index)
        .port(4789)
        .up()
        .execute()
    )


async def _del_link(connection: Connection, handle: Handle, args) -> None:
    link = await _find_link(handle, args.link)
    if link is None:
        _eprint(f"link {args.link} not found")
        return
    await handle.link().delete(link.header.index).execute()


async def _flush_addresses(connection: Connection, handle: Handle, args) -> None:
    link = await _find_link(handle, args.link)
    if link is None:
        _eprint(f"link {args.link} not found")
        return
    request = handle.address().get().set_link_index_filter(link.header.index)
    addresses = [address async for address in request.execute()]
    for address in addresses:
        await handle.address().delete(address).execute()


async def _get_address(connection: Connection, handle: Handle, args) -> None:
    print(f'dumping address for link "{args.link}"')
    link = await _find_link(handle, args.link)
    if link is None:
        _eprint(f"link {args.link} not found")
        return
    request = handle.address().get().set_link_index_filter(link.header.index)
    async for address in request.execute():
        print(repr(address))


async def _get_link_by_index(handle: Handle, index: int) -> None:
    link = await _first(handle.link().get().match_index(index).execute())
    if link is None:
        _eprint(f"no link with index {index} found")
        return
    name = _link_name(link)
    if name is None:
        _eprint(
            f"found link with index {index}, but this link does not have a name"
        )
    else:
        print(f"found link with index {index} (name = {name})")


async def _get_link_by_name(handle: Handle, name: str) -> None:
    if await _find_link(handle, name) is not None:
        print(f"found link {name}")
    else:
        print(f"no link {name} found")


async def _dump_links(handle: Handle) -> None:
    async for link in handle.link().get().execute():
        name = _link_name(link)
        if name is None:
            _eprint(f"found link {link.header.index}, but the link has no name")
        else:
            print(f"found link {link.header.index} ({name})")


async def _dump_bridge_filter_info(handle: Handle) -> None:
    request = handle.link().get().set_filter_mask(AF_BRIDGE, RTEXT_FILTER_BRVLAN)
    async for link in request.execute():
        spec = next((nla for nla in link.nlas if nla.kind == IFLA_AF_SPEC), None)
        if spec is None:
            continue
        try:
            data: object = spec.children()
        except ValueError:
            data = list(spec.data)
        print(
            f"found interface {link.header.index} with AfSpecBridge data {data!r})"
        )


async def _get_links(connection: Connection, handle: Handle, args) -> None:
    print(f"*** retrieving link with index {args.index} ***")
    steps = [_get_link_by_index(handle, args.index)]
    steps.append(_announce(f'*** retrieving link named "{args.name}" ***'))
    steps.append(_get_link_by_name(handle, args.name))
    steps.append(_announce("*** dumping links ***"))
    steps.append(_dump_links(handle))
    steps.append(_dump_bridge_filter_info(handle))
    for step in steps:
        try:
            await step
        except RtnetlinkError as exc:
            _eprint(exc)


async def _announce(text: str) -> None:
    print(text)


async def _set_link_down(connection: Connection, handle: Handle, args) -> None:
    link = await _find_link(handle, args.link)
    if link is None:
        print(f"no link {args.link} found")
        return
    await handle.link().set(link.header.index).down().execute()


async def _require_link(handle: Handle, name: str) -> LinkMessage:
    link = await _find_link(handle, name)
    if link is None:
        _eprint(f"Interface {name} not found")
        raise RequestFailedError()
    return link


async def _altname(connection: Connection, handle: Handle, args) -> None:
    link = await _require_link(handle, args.link)
    if args.action == "show":
        for nla in link.nlas:
            if nla.kind != IFLA_PROP_LIST:
                continue
            for prop in nla.children():
                if prop.kind == IFLA_ALT_IFNAME:
                    print(f"altname: {prop.as_str()}")
    elif args.action == "add":
        await handle.link().property_add(link.header.index).alt_ifname(
            args.altnames
        ).execute()
    else:
        await handle.link().property_del(link.header.index).alt_ifname(
            args.altnames
        ).execute()


async def _listen(connection: Connection, handle: Handle, args) -> None:
    connection.bind(RTMGRP_IPV4_ROUTE | RTMGRP_IPV6_ROUTE)
    async for message in connection.unsolicited():
        print(f"Route change message - {message.payload!r}")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rtnetlink",
        description="Manage network links and addresses over netlink.",
    )
    commands = parser.add_subparsers(dest="name", required=True)

    cmd = commands.add_parser("add-address", help="add an address to a link")
    cmd.add_argument("link")
    cmd.add_argument("address", type=_interface, help="ADDRESS/PREFIX")
    cmd.set_defaults(command=_add_address)

    cmd = commands.add_parser("create-bond", help="create a bond")
    cmd.add_argument("name", nargs="?", default="my-bond")
    cmd.set_defaults(command=_create_bond)

    cmd = commands.add_parser("create-bridge", help="create a bridge")
    cmd.add_argument("name", nargs="?", default="my-bridge-1")
    cmd.set_defaults(command=_create_bridge)

    cmd = commands.add_parser("create-veth", help="create a veth pair")
    cmd.add_argument("name", nargs="?", default="veth-rs-1")
    cmd.add_argument("peer", nargs="?", default="veth-rs-2")
    cmd.set_defaults(command=_create_veth)

    for name, handler in (
        ("create-macvlan", _create_macvlan),
        ("create-macvtap", _create_macvtap),
        ("create-vxlan", _create_vxlan),
    ):
        cmd = commands.add_parser(name, help=f"{name} on top of a link")
        cmd.add_argument("link")
        cmd.set_defaults(command=handler)

    for name, handler, text in (
        ("del-link", _del_link, "delete a link"),
        ("flush-addresses", _flush_addresses, "remove every address of a link"),
        ("set-link-down", _set_link_down, "bring a link down"),
    ):
        cmd = commands.add_parser(name, help=text)
        cmd.add_argument("link")
        cmd.set_defaults(command=handler)

    cmd = commands.add_parser("get-address", help="show the addresses of a link")
    cmd.add_argument("link", nargs="?", default="lo")
    cmd.set_defaults(command=_get_address)

    cmd = commands.add_parser("get-links", help="show links")
    cmd.add_argument("--index", type=int, default=1)
    cmd.add_argument("--name", default="lo")
    cmd.set_defaults(command=_get_links)

    cmd = commands.add_parser("altname", help="manage alternative link names")
    cmd.add_argument("link")
    cmd.add_argument("action", choices=("add", "del", "show"))
    cmd.add_argument("altnames", nargs="*")
    cmd.set_defaults(command=_altname)

    cmd = commands.add_parser("listen", help="print routing changes")
    cmd.set_defaults(command=_listen)
    return parser


async def _run(args: argparse.Namespace) -> int:
    try:
        connection, handle = new_connection()
    except OSError as exc:
        _eprint(f"cannot open a netlink socket: {exc}")
        return 1
    with connection:
        try:
            await args.command(connection, handle, args)
        except RtnetlinkError as exc:
            _eprint(exc)
            return 1
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    """Run one command; return the exit status."""
    args = _build_parser().parse_args(argv)
    return asyncio.run(_run(args))


if __name__ == "__main__":
    sys.exit(main())