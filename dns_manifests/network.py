"""Helpers for deriving addresses from the cluster service network."""

import ipaddress
import logging

from .exceptions import DerivationException, InputException

__all__ = [
    "DNS_CLUSTER_IP_OFFSET",
    "parse_cidr",
    "cidr_host",
    "dns_cluster_ip",
]

_LOGGER = logging.getLogger(__name__)

# The DNS service is exposed on the 10th address of the service network, which
# leaves the lower addresses for other well known services.
DNS_CLUSTER_IP_OFFSET = 10

IPNetwork = ipaddress.IPv4Network | ipaddress.IPv6Network
IPAddress = ipaddress.IPv4Address | ipaddress.IPv6Address


def parse_cidr(value: str) -> IPNetwork:
    """Parse an address range in CIDR notation.

    Host bits set in the address are masked off, so `10.0.0.5/24` is the
    network `10.0.0.0/24`.
    """
    if not isinstance(value, str) or "/" not in value:
        raise InputException(f"Invalid CIDR {value!r}: missing prefix length")
    try:
        return ipaddress.ip_network(value.strip(), strict=False)
    except ValueError as err:
        raise InputException(f"Invalid CIDR {value!r}: {err}") from err


def cidr_host(network: IPNetwork, offset: int) -> IPAddress:
    """Return the address numbered `offset` within the network.

    Offset 0 is the network address. A negative offset counts back from the
    last address in the range, so -1 is the broadcast address of an IPv4
    network.
    """
    size = network.num_addresses
    index = offset + size if offset < 0 else offset
    if not 0 <= index < size:
        raise DerivationException(
            f"Prefix of {network} ({size} addresses) does not accommodate "
            f"a host numbered {offset}"
        )
    return network.network_address + index


def dns_cluster_ip(service_cidr: str) -> str:
    """Return the cluster IP for the DNS service within the service network."""
    network = parse_cidr(service_cidr)
    try:
        address = cidr_host(network, DNS_CLUSTER_IP_OFFSET)
    except DerivationException as err:
        raise DerivationException(
            f"Invalid service CIDR {service_cidr!r}: {err}"
        ) from err
    _LOGGER.debug("Derived DNS cluster IP %s from %s", address, network)
    return str(address)
