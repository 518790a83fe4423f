"""Shared pytest fixtures."""

import os
import socket
from unittest.mock import patch

import pytest

from mcp_forwarded_for.settings import Settings
from mcp_forwarded_for.resolver import AddressResolver

REVERSE_DNS = {
    "58.163.175.187": "cpe-58-163-175-187.example.net",
    "8.8.8.8": "dns.google",
}


def fake_gethostbyaddr(address):
    """Stand-in for socket.gethostbyaddr backed by REVERSE_DNS."""
    if address in REVERSE_DNS:
        return REVERSE_DNS[address], [], [address]
    raise socket.herror(1, "Unknown host")


@pytest.fixture
def reverse_dns():
    """Route reverse lookups through the REVERSE_DNS table."""
    with patch("mcp_forwarded_for.resolver.socket.gethostbyaddr", side_effect=fake_gethostbyaddr) as mock_lookup:
        yield mock_lookup


@pytest.fixture
def settings():
    """Default settings, isolated from the process environment."""
    with patch.dict(os.environ, {}, clear=True):
        return Settings()


@pytest.fixture
def resolver():
    """Resolver with a short lookup timeout."""
    return AddressResolver(lookup_timeout=0.5)
