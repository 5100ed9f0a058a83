import ipaddress

import pytest

from core.config import Configuration, parse_whitelist_entry
from domain.common.exceptions import InvalidWhitelistEntryError


def _whitelisted(*entries: str) -> Configuration:
    config = Configuration(upload_whitelist=list(entries))
    config.initialize()
    return config


def test_bare_ipv4_is_a_single_host():
    config = _whitelisted("192.168.1.10")
    (network,) = config.get_upload_whitelist()
    assert network.prefixlen == 32
    assert config.is_whitelisted("192.168.1.10")
    assert not config.is_whitelisted("192.168.1.11")
    assert not config.is_whitelisted("192.168.1.9")


def test_bare_ipv6_is_a_single_host():
    network = parse_whitelist_entry("2001:db8::1")
    assert network.prefixlen == 128
    assert network == ipaddress.ip_network("2001:db8::1/128")


def test_cidr_host_bits_are_masked():
    assert parse_whitelist_entry("192.168.1.17/24") == ipaddress.ip_network("192.168.1.0/24")


def test_entries_keep_input_order():
    config = _whitelisted("10.0.0.0/8", "127.0.0.1", "2001:db8::/32")
    assert [str(n) for n in config.get_upload_whitelist()] == [
        "10.0.0.0/8",
        "127.0.0.1/32",
        "2001:db8::/32",
    ]


@pytest.mark.parametrize("address", ["10.1.2.3", "203.0.113.7", "::1", "not-an-ip"])
def test_empty_whitelist_accepts_everything(address):
    assert _whitelisted().is_whitelisted(address)


@pytest.mark.parametrize(
    "address, expected",
    [
        ("10.1.2.3", True),
        ("10.255.255.255", True),
        ("172.16.0.1", True),
        ("11.0.0.1", False),
        ("127.0.0.1", False),
        ("2001:db8::42", True),
        ("2001:db9::1", False),
    ],
)
def test_membership_is_any_match(address, expected):
    config = _whitelisted("10.0.0.0/8", "172.16.0.0/12", "2001:db8::/32")
    assert config.is_whitelisted(address) is expected


def test_membership_does_not_depend_on_order():
    forward = _whitelisted("10.0.0.0/8", "192.168.0.0/16", "198.51.100.4")
    backward = _whitelisted("198.51.100.4", "192.168.0.0/16", "10.0.0.0/8")
    for address in ["10.9.8.7", "192.168.44.1", "198.51.100.4", "198.51.100.5", "8.8.8.8"]:
        assert forward.is_whitelisted(address) is backward.is_whitelisted(address)


def test_address_objects_are_accepted():
    config = _whitelisted("10.0.0.0/8")
    assert config.is_whitelisted(ipaddress.ip_address("10.0.0.1"))
    assert not config.is_whitelisted(ipaddress.ip_address("11.0.0.1"))


def test_ipv4_mapped_addresses_match_ipv4_ranges():
    config = _whitelisted("10.0.0.0/8")
    assert config.is_whitelisted("::ffff:10.0.0.5")
    assert not config.is_whitelisted("::ffff:11.0.0.5")


def test_unparseable_address_is_rejected_by_non_empty_whitelist():
    assert not _whitelisted("10.0.0.0/8").is_whitelisted("not-an-ip")


@pytest.mark.parametrize("entry", ["not-an-ip", "10.0.0.1/33", "300.1.1.1", "10.0.0.0/abc", ""])
def test_malformed_entry_aborts_initialize(entry):
    config = Configuration(upload_whitelist=["10.0.0.0/8", entry])
    with pytest.raises(InvalidWhitelistEntryError) as excinfo:
        config.initialize()
    assert excinfo.value.value == entry
    assert f"failed to parse upload whitelist : {entry}" in str(excinfo.value)
    assert config.get_upload_whitelist() == ()


def test_failed_reinitialize_keeps_previous_whitelist():
    config = _whitelisted("10.0.0.0/8")
    previous = config.get_upload_whitelist()

    config.upload_whitelist.append("bogus")
    with pytest.raises(InvalidWhitelistEntryError):
        config.initialize()

    assert config.get_upload_whitelist() == previous


def test_ipv4_mapped_addresses_match_mapped_ranges():
    config = _whitelisted("::ffff:10.0.0.0/104")
    assert config.is_whitelisted("::ffff:10.0.0.5")
    assert not config.is_whitelisted("::ffff:11.0.0.5")
