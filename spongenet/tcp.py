"""TCP segment headers and segments."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field, replace
from typing import ClassVar

from spongenet.parsing import ByteReader, ParseError, ParseResult, internet_checksum

_URG = 0b0010_0000
_ACK = 0b0001_0000
_PSH = 0b0000_1000
_RST = 0b0000_0100
_SYN = 0b0000_0010
_FIN = 0b0000_0001

_SEQ_MASK = 0xFFFFFFFF


@dataclass(eq=False)
class TCPHeader:
    """TCP segment header. Options are skipped, not kept.

    Sequence and acknowledgment numbers are raw 32-bit values.
    """

    LENGTH: ClassVar[int] = 20

    sport: int = 0
    dport: int = 0
    seqno: int = 0
    ackno: int = 0
    doff: int = 5
    urg: bool = False
    ack: bool = False
    psh: bool = False
    rst: bool = False
    syn: bool = False
    fin: bool = False
    win: int = 0
    cksum: int = 0
    uptr: int = 0

    @classmethod
    def from_reader(cls, reader: ByteReader) -> TCPHeader:
        """Read a header from the front of ``reader``, skipping any options."""
        sport = reader.u16()
        dport = reader.u16()
        seqno = reader.u32()
        ackno = reader.u32()
        doff = reader.u8() >> 4
        flags = reader.u8()
        win = reader.u16()
        cksum = reader.u16()
        uptr = reader.u16()

        if doff < 5:
            raise ParseError(ParseResult.HEADER_TOO_SHORT)
        reader.skip(4 * doff - cls.LENGTH)

        return cls(
            sport=sport,
            dport=dport,
            seqno=seqno,
            ackno=ackno,
            doff=doff,
            urg=bool(flags & _URG),
            ack=bool(flags & _ACK),
            psh=bool(flags & _PSH),
            rst=bool(flags & _RST),
            syn=bool(flags & _SYN),
            fin=bool(flags & _FIN),
            win=win,
            cksum=cksum,
            uptr=uptr,
        )

    @classmethod
    def parse(cls, data: bytes) -> TCPHeader:
        """Parse a header from the start of ``data``."""
        return cls.from_reader(ByteReader(data))

    def _flag_byte(self) -> int:
        return (
            (_URG if self.urg else 0)
            | (_ACK if self.ack else 0)
            | (_PSH if self.psh else 0)
            | (_RST if self.rst else 0)
            | (_SYN if self.syn else 0)
            | (_FIN if self.fin else 0)
        )

    def serialize(self) -> bytes:
        """Return the header's wire bytes, without recomputing the checksum."""
        if self.doff < 5:
            raise ValueError("TCP header too short")
        raw = struct.pack(
            "!HHIIBBHHH",
            self.sport,
            self.dport,
            self.seqno & _SEQ_MASK,
            self.ackno & _SEQ_MASK,
            (self.doff << 4) & 0xFF,
            self._flag_byte(),
            self.win,
            self.cksum,
            self.uptr,
        )
        return raw.ljust(4 * self.doff, b"\x00")

    def __str__(self) -> str:
        flags = " ".join(
            f"{name}: {str(bool(value)).lower()}"
            for name, value in (
                ("urg", self.urg),
                ("ack", self.ack),
                ("psh", self.psh),
                ("rst", self.rst),
                ("syn", self.syn),
                ("fin", self.fin),
            )
        )
        return (
            f"TCP source port: {self.sport:x}\n"
            f"TCP dest port: {self.dport:x}\n"
            f"TCP seqno: {self.seqno:x}\n"
            f"TCP ackno: {self.ackno:x}\n"
            f"TCP doff: {self.doff:x}\n"
            f"Flags: {flags}\n"
            f"TCP winsize: {self.win:x}\n"
            f"TCP cksum: {self.cksum:x}\n"
            f"TCP uptr: {self.uptr:x}\n"
        )

    def summary(self) -> str:
        """One-line human-readable summary."""
        flags = "".join(
            letter
            for letter, present in (("S", self.syn), ("A", self.ack), ("R", self.rst), ("F", self.fin))
            if present
        )
        return f"Header(flags={flags},seqno={self.seqno},ack={self.ackno},win={self.win})"

    def __eq__(self, other: object) -> bool:
        """Compare all fields except the ports and the checksum."""
        if not isinstance(other, TCPHeader):
            return NotImplemented
        return (
            (self.seqno & _SEQ_MASK) == (other.seqno & _SEQ_MASK)
            and (self.ackno & _SEQ_MASK) == (other.ackno & _SEQ_MASK)
            and self.doff == other.doff
            and self.urg == other.urg
            and self.ack == other.ack
            and self.psh == other.psh
            and self.rst == other.rst
            and self.syn == other.syn
            and self.fin == other.fin
            and self.win == other.win
            and self.uptr == other.uptr
        )


@dataclass
class TCPSegment:
    """A TCP header followed by its payload."""

    header: TCPHeader = field(default_factory=TCPHeader)
    payload: bytes = b""

    @classmethod
    def parse(cls, data: bytes, datagram_layer_checksum: int = 0) -> TCPSegment:
        """Parse a segment, verifying its checksum against the lower layer's pseudo-sum."""
        raw = bytes(data)
        if internet_checksum(raw, datagram_layer_checksum):
            raise ParseError(ParseResult.BAD_CHECKSUM)
        reader = ByteReader(raw)
        header = TCPHeader.from_reader(reader)
        return cls(header=header, payload=reader.remaining())

    def serialize(self, datagram_layer_checksum: int = 0) -> bytes:
        """Return the segment's wire bytes with a freshly computed checksum."""
        zeroed = replace(self.header, cksum=0)
        payload = bytes(self.payload)
        cksum = internet_checksum(zeroed.serialize() + payload, datagram_layer_checksum)
        return replace(zeroed, cksum=cksum).serialize() + payload

    def length_in_sequence_space(self) -> int:
        """Payload length, plus one for SYN and one for FIN."""
        return len(self.payload) + int(self.header.syn) + int(self.header.fin)