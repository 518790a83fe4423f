"""Apache/Tomcat style access log formatting with forwarded-for elements.

Besides the usual pattern codes two extra ones are understood:

* ``%f`` - client address picked from the X-Forwarded-For chain, falling back
  to the peer address of the connection.
* ``%F`` - the same address, reverse-resolved to a hostname when possible.

Behind a load balancer ``%h`` only ever shows the balancer, and
``%{X-Forwarded-For}i`` shows the raw (possibly multi-address) header.
"""

import logging
from datetime import timezone
from typing import Callable, List, Optional, Tuple

from .models import AccessLogRequest
from .resolver import AddressResolver, X_FORWARDED_FOR_HEADER

logger = logging.getLogger(__name__)

PATTERN_ALIASES = {
    "common": '%h %l %u %t "%r" %s %b',
    "combined": '%h %l %u %t "%r" %s %b "%{Referer}i" "%{User-Agent}i"',
}

_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")

# (code, argument); code "" is a literal with the text as argument
Element = Tuple[str, Optional[str]]


def compile_pattern(pattern: str) -> List[Element]:
    """Split a log pattern into literal and ``%`` code elements."""
    elements: List[Element] = []
    literal: List[str] = []

    def flush() -> None:
        if literal:
            elements.append(("", "".join(literal)))
            literal.clear()

    i = 0
    while i < len(pattern):
        ch = pattern[i]
        if ch != "%" or i + 1 == len(pattern):
            literal.append(ch)
            i += 1
            continue

        code = pattern[i + 1]
        if code == "%":
            literal.append("%")
            i += 2
        elif code == "{":
            end = pattern.find("}", i + 2)
            if end == -1 or end + 1 == len(pattern):
                literal.append(pattern[i:])
                break
            flush()
            elements.append((pattern[end + 1], pattern[i + 2:end]))
            i = end + 2
        else:
            flush()
            elements.append((code, None))
            i += 2

    flush()
    return elements


def format_timestamp(request: AccessLogRequest) -> str:
    """Render the request time as ``[dd/Mon/yyyy:HH:MM:SS +zzzz]``."""
    ts = request.timestamp
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return f"[{ts.day:02d}/{_MONTHS[ts.month - 1]}/{ts.year}:{ts:%H:%M:%S} {ts:%z}]"


def _dash(value: Optional[object]) -> str:
    if value is None or value == "":
        return "-"
    return str(value)


class AccessLogFormatter:
    """Render :class:`AccessLogRequest` values according to a log pattern."""

    def __init__(
        self,
        pattern: str = "common",
        resolver: Optional[AddressResolver] = None,
        header_name: str = X_FORWARDED_FOR_HEADER,
        hostname_lookups: bool = True,
    ):
        self.pattern = PATTERN_ALIASES.get(pattern, pattern)
        self.resolver = resolver or AddressResolver()
        self.header_name = header_name
        self.hostname_lookups = hostname_lookups
        self.elements = compile_pattern(self.pattern)

    @property
    def needs_hostname(self) -> bool:
        return any(code == "F" for code, _ in self.elements)

    def forwarded_address(self, request: AccessLogRequest) -> str:
        return self.resolver.select_address(request.get_header(self.header_name), request.remote_addr)

    def forwarded_hostname(self, request: AccessLogRequest) -> str:
        if not self.hostname_lookups:
            return self.forwarded_address(request)
        return self.resolver.select_hostname(request.get_header(self.header_name), request.remote_addr)

    def format(self, request: AccessLogRequest) -> str:
        """Render one log line, resolving ``%F`` synchronously."""
        return self._render(request, lambda: self.forwarded_hostname(request))

    async def aformat(self, request: AccessLogRequest) -> str:
        """Render one log line, resolving ``%F`` off the event loop with the resolver timeout."""
        hostname = None
        if self.needs_hostname:
            if self.hostname_lookups:
                hostname = await self.resolver.aselect_hostname(
                    request.get_header(self.header_name), request.remote_addr
                )
            else:
                hostname = self.forwarded_address(request)
        return self._render(request, lambda: hostname)

    def _render(self, request: AccessLogRequest, hostname: Callable[[], Optional[str]]) -> str:
        parts = []
        resolved: Optional[str] = None
        for code, arg in self.elements:
            if code == "F":
                if resolved is None:
                    resolved = hostname()
                parts.append(resolved)
            else:
                parts.append(self._element(code, arg, request))
        return "".join(parts)

    def _element(self, code: str, arg: Optional[str], request: AccessLogRequest) -> str:
        if code == "":
            return arg
        if arg is not None:
            if code == "i":
                return _dash(request.get_header(arg))
            return f"%{{{arg}}}{code}"

        if code == "f":
            return self.forwarded_address(request)
        if code in ("a", "h"):
            return request.remote_addr
        if code == "A":
            return _dash(request.local_addr)
        if code == "b":
            return _dash(request.bytes_sent or None)
        if code == "B":
            return str(request.bytes_sent)
        if code == "H":
            return request.protocol
        if code == "l":
            return "-"
        if code == "m":
            return request.method
        if code == "p":
            return _dash(request.server_port)
        if code == "q":
            return f"?{request.query}" if request.query else ""
        if code == "r":
            return request.request_line
        if code == "s":
            return str(request.status)
        if code == "t":
            return format_timestamp(request)
        if code == "u":
            return _dash(request.remote_user)
        if code == "U":
            return request.path
        if code == "v":
            return _dash(request.server_name)
        if code == "D":
            return str(request.elapsed_ms)
        if code == "T":
            return f"{request.elapsed_ms // 1000}.{request.elapsed_ms % 1000:03d}"

        logger.debug(f"Unknown access log pattern code %{code}")
        return f"%{code}"
