"""Pydantic models for address selection, hostname resolution and access logging."""

from datetime import datetime, timezone
from typing import List, Literal, Optional, Dict
from pydantic import BaseModel, Field


class AddressSelection(BaseModel):
    """Outcome of choosing a client address from a forwarding chain."""
    header_value: Optional[str] = None
    fallback_address: str
    candidates: List[str] = Field(default_factory=list)
    address: str
    source: Literal["header", "fallback"]


class HostnameResolution(BaseModel):
    """Outcome of a best-effort reverse lookup."""
    address: str
    hostname: str
    resolved: bool
    error: Optional[str] = None


class AccessLogRequest(BaseModel):
    """Per-request data rendered by the access log formatter."""
    remote_addr: str
    headers: Dict[str, str] = Field(default_factory=dict)
    method: str = "GET"
    path: str = "/"
    query: Optional[str] = None
    protocol: str = "HTTP/1.1"
    status: int = Field(default=200, ge=100, le=599)
    bytes_sent: int = Field(default=0, ge=0)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    elapsed_ms: int = Field(default=0, ge=0)
    remote_user: Optional[str] = None
    local_addr: Optional[str] = None
    server_name: Optional[str] = None
    server_port: Optional[int] = None

    def get_header(self, name: str) -> Optional[str]:
        """Look up a request header case-insensitively."""
        wanted = name.lower()
        for key, value in self.headers.items():
            if key.lower() == wanted:
                return value
        return None

    @property
    def request_line(self) -> str:
        """Request line as it appears in ``%r``."""
        target = self.path
        if self.query:
            target = f"{target}?{self.query}"
        return f"{self.method} {target} {self.protocol}"
