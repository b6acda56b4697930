"""Configuration for TCP connections and datagram adapters."""

from __future__ import annotations

import socket
from dataclasses import dataclass, field
from typing import ClassVar, Optional


def _check_range(name: str, value: int, limit: int) -> None:
    if not 0 <= value <= limit:
        raise ValueError(f"{name} must be between 0 and {limit}, got {value}")


@dataclass(frozen=True)
class Endpoint:
    """An IPv4 host and a port."""

    host: str = "0"
    port: int = 0

    def __post_init__(self) -> None:
        _check_range("port", self.port, 0xFFFF)

    def ipv4_numeric(self) -> int:
        """Return the host as a 32-bit number."""
        try:
            packed = socket.inet_aton(self.host)
        except OSError as exc:
            raise ValueError(f"not an IPv4 address: {self.host!r}") from exc
        return int.from_bytes(packed, "big")

    def __str__(self) -> str:
        return f"{self.host}:{self.port}"


@dataclass
class TCPConfig:
    """Settings for a TCP sender and receiver."""

    DEFAULT_CAPACITY: ClassVar[int] = 64000
    MAX_PAYLOAD_SIZE: ClassVar[int] = 1000
    TIMEOUT_DFLT: ClassVar[int] = 1000
    MAX_RETX_ATTEMPTS: ClassVar[int] = 8

    rt_timeout: int = 1000
    recv_capacity: int = 64000
    send_capacity: int = 64000
    fixed_isn: Optional[int] = None

    def __post_init__(self) -> None:
        _check_range("rt_timeout", self.rt_timeout, 0xFFFF)
        if self.recv_capacity < 0:
            raise ValueError("recv_capacity must not be negative")
        if self.send_capacity < 0:
            raise ValueError("send_capacity must not be negative")
        if self.fixed_isn is not None:
            _check_range("fixed_isn", self.fixed_isn, 0xFFFFFFFF)


@dataclass
class FdAdapterConfig:
    """Addresses and loss rates for a datagram adapter."""

    source: Endpoint = field(default_factory=Endpoint)
    destination: Endpoint = field(default_factory=Endpoint)
    loss_rate_dn: int = 0
    loss_rate_up: int = 0

    def __post_init__(self) -> None:
        _check_range("loss_rate_dn", self.loss_rate_dn, 0xFFFF)
        _check_range("loss_rate_up", self.loss_rate_up, 0xFFFF)