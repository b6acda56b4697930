"""IPv4 headers and datagrams."""

from __future__ import annotations

import ipaddress
import struct
from dataclasses import dataclass, field, replace
from typing import ClassVar

from spongenet.parsing import ByteReader, ParseError, ParseResult, internet_checksum


def format_ipv4(address: int) -> str:
    """Return a numeric IPv4 address in dotted-quad form."""
    return str(ipaddress.IPv4Address(address))


@dataclass
class IPv4Header:
    """IPv4 datagram header. Options are skipped, not kept."""

    LENGTH: ClassVar[int] = 20
    DEFAULT_TTL: ClassVar[int] = 128
    PROTO_TCP: ClassVar[int] = 6

    ver: int = 4
    hlen: int = 5
    tos: int = 0
    len: int = 0
    id: int = 0
    df: bool = True
    mf: bool = False
    offset: int = 0
    ttl: int = 128
    proto: int = 6
    cksum: int = 0
    src: int = 0
    dst: int = 0

    @classmethod
    def from_reader(cls, reader: ByteReader) -> IPv4Header:
        """Read a header, checking length, version and checksum."""
        original = reader.remaining()
        data_size = len(original)
        if data_size < cls.LENGTH:
            raise ParseError(ParseResult.PACKET_TOO_SHORT)

        first_byte = reader.u8()
        ver = first_byte >> 4
        hlen = first_byte & 0x0F
        tos = reader.u8()
        length = reader.u16()
        ident = reader.u16()
        fo_val = reader.u16()
        ttl = reader.u8()
        proto = reader.u8()
        cksum = reader.u16()
        src = reader.u32()
        dst = reader.u32()

        if data_size < 4 * hlen:
            raise ParseError(ParseResult.PACKET_TOO_SHORT)
        if ver != 4:
            raise ParseError(ParseResult.WRONG_IP_VERSION)
        if hlen < 5:
            raise ParseError(ParseResult.HEADER_TOO_SHORT)
        if data_size != length:
            raise ParseError(ParseResult.TRUNCATED_PACKET)

        reader.skip(4 * hlen - cls.LENGTH)

        if internet_checksum(original[: 4 * hlen]):
            raise ParseError(ParseResult.BAD_CHECKSUM)

        return cls(
            ver=ver,
            hlen=hlen,
            tos=tos,
            len=length,
            id=ident,
            df=bool(fo_val & 0x4000),
            mf=bool(fo_val & 0x2000),
            offset=fo_val & 0x1FFF,
            ttl=ttl,
            proto=proto,
            cksum=cksum,
            src=src,
            dst=dst,
        )

    @classmethod
    def parse(cls, data: bytes) -> IPv4Header:
        """Parse a header; ``data`` must be the whole datagram."""
        return cls.from_reader(ByteReader(data))

    def serialize(self) -> bytes:
        """Return the header's wire bytes, without recomputing the checksum."""
        if self.ver != 4:
            raise ValueError("wrong IP version")
        if 4 * self.hlen < self.LENGTH:
            raise ValueError("IP header too short")
        fo_val = (0x4000 if self.df else 0) | (0x2000 if self.mf else 0) | (self.offset & 0x1FFF)
        raw = struct.pack(
            "!BBHHHBBHII",
            ((self.ver << 4) | (self.hlen & 0xF)) & 0xFF,
            self.tos,
            self.len,
            self.id,
            fo_val,
            self.ttl,
            self.proto,
            self.cksum,
            self.src,
            self.dst,
        )
        return raw.ljust(4 * self.hlen, b"\x00")

    def payload_length(self) -> int:
        """Length of the payload as claimed by the header."""
        return (self.len - 4 * self.hlen) & 0xFFFF

    def pseudo_cksum(self) -> int:
        """The pseudo-header's contribution to an encapsulated TCP checksum."""
        pcksum = (self.src >> 16) + (self.src & 0xFFFF)
        pcksum += (self.dst >> 16) + (self.dst & 0xFFFF)
        pcksum += self.proto
        pcksum += self.payload_length()
        return pcksum & 0xFFFFFFFF

    def __str__(self) -> str:
        return (
            f"IP version: {self.ver:x}\n"
            f"IP hdr len: {self.hlen:x}\n"
            f"IP tos: {self.tos:x}\n"
            f"IP dgram len: {self.len:x}\n"
            f"IP id: {self.id:x}\n"
            f"Flags: df: {str(bool(self.df)).lower()} mf: {str(bool(self.mf)).lower()}\n"
            f"Offset: {self.offset:x}\n"
            f"TTL: {self.ttl:x}\n"
            f"Protocol: {self.proto:x}\n"
            f"Checksum: {self.cksum:x}\n"
            f"Src addr: {self.src:x}\n"
            f"Dst addr: {self.dst:x}\n"
        )

    def summary(self) -> str:
        """One-line human-readable summary."""
        ttl_part = "" if self.ttl >= 10 else f"ttl={self.ttl}, "
        return (
            f"IPv{self.ver:x}, len={self.len:x}, protocol={self.proto:x}, {ttl_part}"
            f"src={format_ipv4(self.src)}, dst={format_ipv4(self.dst)}"
        )


@dataclass
class IPv4Datagram:
    """An IPv4 header followed by its payload."""

    header: IPv4Header = field(default_factory=IPv4Header)
    payload: bytes = b""

    @classmethod
    def parse(cls, data: bytes) -> IPv4Datagram:
        """Parse a whole datagram."""
        reader = ByteReader(data)
        header = IPv4Header.from_reader(reader)
        payload = reader.remaining()
        if len(payload) != header.payload_length():
            raise ParseError(ParseResult.PACKET_TOO_SHORT)
        return cls(header=header, payload=payload)

    def serialize(self) -> bytes:
        """Return the datagram's wire bytes with a freshly computed header checksum."""
        if len(self.payload) != self.header.payload_length():
            raise ValueError("IPv4 datagram payload is wrong size")
        zeroed = replace(self.header, cksum=0)
        sealed = replace(zeroed, cksum=internet_checksum(zeroed.serialize()))
        return sealed.serialize() + bytes(self.payload)


InternetDatagram = IPv4Datagram