"""Adapters that carry TCP segments over UDP or inside IPv4 datagrams."""

from __future__ import annotations

import random
import socket
from typing import Optional, Protocol

from spongenet.config import Endpoint, FdAdapterConfig
from spongenet.ipv4 import IPv4Datagram, IPv4Header, format_ipv4
from spongenet.parsing import ParseError
from spongenet.tcp import TCPSegment

_MAX_DATAGRAM = 65536


class FdAdapterBase:
    """Configuration and listening state shared by all datagram adapters.

    ``listening`` is true while the connected TCP state machine waits for a peer.
    """

    def __init__(self) -> None:
        self.config = FdAdapterConfig()
        self.listening = False

    def tick(self, ms_since_last_tick: int) -> None:
        """Called periodically as time passes; the base adapter has nothing to do."""


class TCPOverUDPSocketAdapter(FdAdapterBase):
    """Reads and writes TCP segments carried as UDP payloads."""

    def __init__(self, sock: socket.socket) -> None:
        super().__init__()
        self.sock = sock

    def read(self) -> Optional[TCPSegment]:
        """Receive one datagram; return its segment if it is valid and for this connection."""
        payload, (host, port, *_) = self.sock.recvfrom(_MAX_DATAGRAM)
        sender = Endpoint(host, port)

        if not self.listening and not _same_endpoint(sender, self.config.destination):
            return None

        try:
            seg = TCPSegment.parse(payload, 0)
        except ParseError:
            return None

        if self.listening:
            if seg.header.syn and not seg.header.rst:
                self.config.destination = sender
                self.listening = False
            else:
                return None

        return seg

    def write(self, seg: TCPSegment) -> None:
        """Set the segment's ports and send it as a UDP payload to the destination."""
        seg.header.sport = self.config.source.port
        seg.header.dport = self.config.destination.port
        destination = self.config.destination
        self.sock.sendto(seg.serialize(0), (destination.host, destination.port))

    def fileno(self) -> int:
        """File descriptor of the underlying UDP socket."""
        return self.sock.fileno()


def _same_endpoint(a: Endpoint, b: Endpoint) -> bool:
    return a.port == b.port and a.ipv4_numeric() == b.ipv4_numeric()


class TCPOverIPv4Adapter(FdAdapterBase):
    """Converts between TCP segments and IPv4 datagrams."""

    def unwrap_tcp_in_ip(self, ip_dgram: IPv4Datagram) -> Optional[TCPSegment]:
        """Return the datagram's TCP segment if it is valid and belongs to this connection."""
        header = ip_dgram.header
        config = self.config

        # Binding to address "0" is allowed; the reply then comes from the address contacted.
        if not self.listening and header.dst != config.source.ipv4_numeric():
            return None
        if not self.listening and header.src != config.destination.ipv4_numeric():
            return None
        if header.proto != IPv4Header.PROTO_TCP:
            return None

        try:
            seg = TCPSegment.parse(ip_dgram.payload, header.pseudo_cksum())
        except ParseError:
            return None

        if seg.header.dport != config.source.port:
            return None

        if self.listening:
            if seg.header.syn and not seg.header.rst:
                config.source = Endpoint(format_ipv4(header.dst), config.source.port)
                config.destination = Endpoint(format_ipv4(header.src), seg.header.sport)
                self.listening = False
            else:
                return None

        if seg.header.sport != config.destination.port:
            return None

        return seg

    def wrap_tcp_in_ip(self, seg: TCPSegment) -> IPv4Datagram:
        """Set the segment's ports and wrap it in an IPv4 datagram."""
        config = self.config
        seg.header.sport = config.source.port
        seg.header.dport = config.destination.port

        ip_header = IPv4Header(
            src=config.source.ipv4_numeric(),
            dst=config.destination.ipv4_numeric(),
        )
        ip_header.len = ip_header.hlen * 4 + seg.header.doff * 4 + len(seg.payload)

        return IPv4Datagram(
            header=ip_header,
            payload=seg.serialize(ip_header.pseudo_cksum()),
        )


class _Adapter(Protocol):
    config: FdAdapterConfig

    def read(self) -> Optional[TCPSegment]: ...

    def write(self, seg: TCPSegment) -> None: ...

    def tick(self, ms_since_last_tick: int) -> None: ...


class _RandomBits(Protocol):
    def getrandbits(self, k: int) -> int: ...


class LossyFdAdapter:
    """Wraps an adapter and randomly drops reads and writes.

    The loss rates in the adapter's configuration are out of 65536.
    """

    def __init__(self, adapter: _Adapter, rng: Optional[_RandomBits] = None) -> None:
        self.adapter = adapter
        self._rng = rng if rng is not None else random.Random()

    def _should_drop(self, uplink: bool) -> bool:
        cfg = self.adapter.config
        loss = cfg.loss_rate_up if uplink else cfg.loss_rate_dn
        return loss != 0 and (self._rng.getrandbits(32) & 0xFFFF) < loss

    def read(self) -> Optional[TCPSegment]:
        """Read from the adapter; the result may be dropped."""
        seg = self.adapter.read()
        if self._should_drop(False):
            return None
        return seg

    def write(self, seg: TCPSegment) -> None:
        """Write through the adapter unless the segment is dropped."""
        if self._should_drop(True):
            return
        self.adapter.write(seg)

    def set_listening(self, listening: bool) -> None:
        """Set the wrapped adapter's listening flag."""
        self.adapter.listening = listening

    @property
    def config(self) -> FdAdapterConfig:
        """The wrapped adapter's configuration."""
        return self.adapter.config

    def tick(self, ms_since_last_tick: int) -> None:
        """Pass elapsed time on to the wrapped adapter."""
        self.adapter.tick(ms_since_last_tick)