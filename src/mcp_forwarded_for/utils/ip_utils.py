"""IPv4 address scanning and classification helpers."""

from __future__ import annotations

import re
from dataclasses import dataclass
from threading import Lock
from re import Pattern
from typing import List, Optional

# Lexical shape only: octets are not range-checked against 0-255.
IP_ADDRESS_REGEX = r"([0-9]{1,3}\.[0-9]{1,3}\.[0-9]{1,3}\.[0-9]{1,3})"

_PRIVATE_PREFIXES: tuple[str, ...] = (
    r"^127\.0\.0\.1",  # loopback
    r"^10\.",
    r"^172\.1[6-9]\.",
    r"^172\.2[0-9]\.",
    r"^172\.3[0-1]\.",
    r"^192\.168\.",
)
PRIVATE_IP_ADDRESS_REGEX = "|".join(f"({prefix})" for prefix in _PRIVATE_PREFIXES)


@dataclass(frozen=True)
class AddressPatterns:
    """Compiled patterns used to scan and classify forwarding chains."""

    address: Pattern[str]
    private: Pattern[str]

    @classmethod
    def compile(cls) -> "AddressPatterns":
        return cls(
            address=re.compile(IP_ADDRESS_REGEX),
            private=re.compile(PRIVATE_IP_ADDRESS_REGEX),
        )


_patterns: Optional[AddressPatterns] = None
_patterns_lock = Lock()


def get_patterns() -> AddressPatterns:
    """Return the shared patterns, compiling them on first use."""
    global _patterns
    if _patterns is not None:
        return _patterns

    with _patterns_lock:
        if _patterns is None:
            _patterns = AddressPatterns.compile()
        return _patterns


def extract_addresses(value: Optional[str], patterns: Optional[AddressPatterns] = None) -> List[str]:
    """Return every IPv4-shaped token in *value*, left to right."""
    if not value:
        return []
    patterns = patterns or get_patterns()
    return patterns.address.findall(value)


def is_private_address(address: str, patterns: Optional[AddressPatterns] = None) -> bool:
    """Return True if *address* starts with one of the private prefixes.

    Matching is textual: ``10.10.300.23`` is private, while ``127.0.0.2``,
    ``169.254.x.x`` and ``100.64.x.x`` are not.
    """
    patterns = patterns or get_patterns()
    return patterns.private.search(address) is not None


def find_non_private_address(
    value: Optional[str], patterns: Optional[AddressPatterns] = None
) -> Optional[str]:
    """Return the leftmost non-private address in *value*, or None."""
    patterns = patterns or get_patterns()
    if not value:
        return None
    for match in patterns.address.finditer(value):
        candidate = match.group(0)
        if not is_private_address(candidate, patterns):
            return candidate
    return None
