"""Client address selection from X-Forwarded-For chains.

The forwarding header is supplied by the client and every proxy on the way,
so its content is trivially spoofed. The address chosen here is only good
for logging and cosmetic customisation; never base an authentication or
authorization decision on it.
"""

import asyncio
import logging
import socket
from typing import Mapping, Optional

from .models import AddressSelection, HostnameResolution
from .utils.ip_utils import (
    AddressPatterns,
    extract_addresses,
    find_non_private_address,
    get_patterns,
)

logger = logging.getLogger(__name__)

X_FORWARDED_FOR_HEADER = "X-Forwarded-For"


class AddressResolver:
    """Pick the leftmost non-private forwarded address and optionally reverse-resolve it."""

    def __init__(
        self,
        patterns: Optional[AddressPatterns] = None,
        lookup_timeout: Optional[float] = None,
    ):
        self._patterns = patterns
        self.lookup_timeout = lookup_timeout

    @property
    def patterns(self) -> AddressPatterns:
        return self._patterns or get_patterns()

    def select_address(self, header_value: Optional[str], fallback_address: str) -> str:
        """Return the first non-private address in *header_value*, else *fallback_address*."""
        address = find_non_private_address(header_value, self.patterns)
        return address if address is not None else fallback_address

    def explain(self, header_value: Optional[str], fallback_address: str) -> AddressSelection:
        """Like :meth:`select_address` but also report the candidates that were scanned."""
        address = find_non_private_address(header_value, self.patterns)
        return AddressSelection(
            header_value=header_value,
            fallback_address=fallback_address,
            candidates=extract_addresses(header_value, self.patterns),
            address=address if address is not None else fallback_address,
            source="header" if address is not None else "fallback",
        )

    def resolve(self, address: str) -> HostnameResolution:
        """Reverse-resolve *address*; failures yield the address itself."""
        try:
            hostname = socket.gethostbyaddr(address)[0]
        except Exception as e:
            logger.debug(f"Reverse lookup failed for {address}: {e}")
            return HostnameResolution(address=address, hostname=address, resolved=False, error=str(e) or type(e).__name__)

        if not hostname:
            return HostnameResolution(address=address, hostname=address, resolved=False)
        return HostnameResolution(address=address, hostname=hostname, resolved=True)

    async def aresolve(self, address: str) -> HostnameResolution:
        """Async variant of :meth:`resolve`, bounded by ``lookup_timeout`` when set."""
        lookup = asyncio.get_event_loop().run_in_executor(None, self.resolve, address)
        try:
            if self.lookup_timeout is None:
                return await lookup
            return await asyncio.wait_for(lookup, timeout=self.lookup_timeout)
        except asyncio.TimeoutError:
            logger.debug(f"Reverse lookup for {address} timed out after {self.lookup_timeout}s")
            return HostnameResolution(address=address, hostname=address, resolved=False, error="timeout")
        except Exception as e:
            logger.debug(f"Reverse lookup failed for {address}: {e}")
            return HostnameResolution(address=address, hostname=address, resolved=False, error=str(e) or type(e).__name__)

    def select_hostname(self, header_value: Optional[str], fallback_address: str) -> str:
        """Return the hostname of the selected address, or the address if it cannot be resolved."""
        return self.resolve(self.select_address(header_value, fallback_address)).hostname

    async def aselect_hostname(self, header_value: Optional[str], fallback_address: str) -> str:
        return (await self.aresolve(self.select_address(header_value, fallback_address))).hostname


_default_resolver = AddressResolver()


def select_address(header_value: Optional[str], fallback_address: str) -> str:
    """Return the leftmost non-private address of the chain, or *fallback_address*."""
    return _default_resolver.select_address(header_value, fallback_address)


def select_hostname(header_value: Optional[str], fallback_address: str) -> str:
    """Return the resolved hostname of :func:`select_address`; never raises."""
    return _default_resolver.select_hostname(header_value, fallback_address)


def _header(headers: Mapping[str, str], name: str) -> Optional[str]:
    wanted = name.lower()
    for key, value in headers.items():
        if key.lower() == wanted:
            return value
    return None


def address_from_headers(
    headers: Mapping[str, str],
    fallback_address: str,
    header_name: str = X_FORWARDED_FOR_HEADER,
) -> str:
    """Select the client address from a request's headers."""
    return select_address(_header(headers, header_name), fallback_address)


def hostname_from_headers(
    headers: Mapping[str, str],
    fallback_address: str,
    header_name: str = X_FORWARDED_FOR_HEADER,
) -> str:
    """Select and reverse-resolve the client address from a request's headers."""
    return select_hostname(_header(headers, header_name), fallback_address)
