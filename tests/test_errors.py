import errno
import os

import pytest

from rtnetlink.errors import (
    InvalidAddressError,
    InvalidHardwareAddressError,
    InvalidIpError,
    NamespaceError,
    NetlinkError,
    RequestFailedError,
    RtnetlinkError,
    UnexpectedMessageError,
)
from rtnetlink.messages import ErrorMessage


def test_request_failed_message():
    assert str(RequestFailedError()) == "A netlink request failed"


def test_namespace_error_message():
    error = NamespaceError("cannot mount")
    assert str(error) == "Namespace error cannot mount"
    assert error.reason == "cannot mount"


def test_invalid_ip_lists_bytes():
    error = InvalidIpError(b"\x01\x02")
    assert str(error) == "Failed to parse an IP address: [1, 2]"
    assert error.address == b"\x01\x02"


def test_invalid_address_lists_both_parts():
    error = InvalidAddressError(b"\x0a", b"\xff")
    assert str(error) == (
        "Failed to parse a network address (IP and mask): [10]/[255]"
    )


def test_invalid_hardware_address_mentions_bytes():
    error = InvalidHardwareAddressError(bytes([1, 2, 3]))
    text = str(error)
    assert text.startswith("Received a link message (RTM_GETLINK")
    assert text.endswith("invalid hardware address attribute: [1, 2, 3].")


def test_netlink_error_wraps_error_message():
    message = ErrorMessage(code=-errno.ENODEV)
    error = NetlinkError(message)
    assert error.error is message
    assert str(error).startswith("Received a netlink error message ")
    assert os.strerror(errno.ENODEV) in str(error)


def test_unexpected_message_keeps_message():
    error = UnexpectedMessageError("payload")
    assert error.message == "payload"
    assert str(error) == "Received an unexpected message 'payload'"


def test_errors_compare_by_value():
    assert RequestFailedError() == RequestFailedError()
    assert NamespaceError("a") == NamespaceError("a")
    assert not NamespaceError("a") == NamespaceError("b")
    assert not InvalidIpError(b"\x01") == NamespaceError("a")
    assert hash(NamespaceError("a")) == hash(NamespaceError("a"))


def test_all_errors_share_the_base_class():
    with pytest.raises(RtnetlinkError) as ip_info:
        raise InvalidIpError(b"\x07")
    assert ip_info.value.address == b"\x07"
    assert str(ip_info.value) == "Failed to parse an IP address: [7]"
    with pytest.raises(RtnetlinkError) as netlink_info:
        raise NetlinkError(ErrorMessage(code=-errno.EPERM))
    assert netlink_info.value.error.code == -errno.EPERM