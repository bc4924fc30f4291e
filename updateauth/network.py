"""
Trusted network ranges

Answers whether an origin address lies inside the registry's own network.
"""

import ipaddress
import logging
from typing import Iterable, List, Union

logger = logging.getLogger(__name__)

IpNetwork = Union[ipaddress.IPv4Network, ipaddress.IPv6Network]


class IpRanges:
    """A fixed set of trusted CIDR ranges, IPv4 and IPv6."""

    def __init__(self, ranges: Iterable[str] = ()):
        networks: List[IpNetwork] = []
        for value in ranges:
            try:
                networks.append(ipaddress.ip_network(value.strip(), strict=False))
            except ValueError as e:
                raise ValueError(f"Invalid trusted range '{value}': {e}") from e
        self._networks = tuple(networks)

    @property
    def networks(self) -> tuple:
        return self._networks

    def is_trusted(self, address: str) -> bool:
        """
        True if the address (or the whole prefix, if a prefix is given)
        lies inside a trusted range. Unparsable addresses are not trusted.
        """
        try:
            candidate = ipaddress.ip_network(address.strip(), strict=False)
        except (ValueError, AttributeError):
            logger.debug("Unparsable origin address %r", address)
            return False

        for network in self._networks:
            if candidate.version == network.version and candidate.subnet_of(network):
                return True
        return False
