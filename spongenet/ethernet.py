"""Ethernet addresses, headers and frames."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from typing import ClassVar

from spongenet.parsing import ByteReader, ParseError, ParseResult

ETHERNET_ADDRESS_LENGTH = 6
ETHERNET_BROADCAST = b"\xff" * ETHERNET_ADDRESS_LENGTH


def format_ethernet_address(address: bytes) -> str:
    """Return ``address`` as colon-separated lowercase hex pairs."""
    return ":".join(f"{byte:02x}" for byte in address)


def _check_address(name: str, address: bytes) -> None:
    if len(address) != ETHERNET_ADDRESS_LENGTH:
        raise ValueError(f"{name} must be {ETHERNET_ADDRESS_LENGTH} bytes, got {len(address)}")


@dataclass
class EthernetHeader:
    """Ethernet frame header."""

    LENGTH: ClassVar[int] = 14
    TYPE_IPv4: ClassVar[int] = 0x800
    TYPE_ARP: ClassVar[int] = 0x806

    dst: bytes = bytes(ETHERNET_ADDRESS_LENGTH)
    src: bytes = bytes(ETHERNET_ADDRESS_LENGTH)
    type: int = 0

    @classmethod
    def from_reader(cls, reader: ByteReader) -> EthernetHeader:
        """Read a header from the front of ``reader``."""
        if len(reader.remaining()) < cls.LENGTH:
            raise ParseError(ParseResult.PACKET_TOO_SHORT)
        dst = bytes(reader.u8() for _ in range(ETHERNET_ADDRESS_LENGTH))
        src = bytes(reader.u8() for _ in range(ETHERNET_ADDRESS_LENGTH))
        return cls(dst=dst, src=src, type=reader.u16())

    @classmethod
    def parse(cls, data: bytes) -> EthernetHeader:
        """Parse a header from the start of ``data``."""
        return cls.from_reader(ByteReader(data))

    def serialize(self) -> bytes:
        """Return the header's wire bytes."""
        _check_address("dst", self.dst)
        _check_address("src", self.src)
        return bytes(self.dst) + bytes(self.src) + struct.pack("!H", self.type)

    def __str__(self) -> str:
        if self.type == self.TYPE_IPv4:
            type_name = "IPv4"
        elif self.type == self.TYPE_ARP:
            type_name = "ARP"
        else:
            type_name = f"[unknown type {self.type:x}!]"
        return (
            f"dst={format_ethernet_address(self.dst)}, "
            f"src={format_ethernet_address(self.src)}, type={type_name}"
        )


@dataclass
class EthernetFrame:
    """An Ethernet header followed by its payload."""

    header: EthernetHeader = field(default_factory=EthernetHeader)
    payload: bytes = b""

    @classmethod
    def parse(cls, data: bytes) -> EthernetFrame:
        """Parse a whole frame."""
        reader = ByteReader(data)
        header = EthernetHeader.from_reader(reader)
        return cls(header=header, payload=reader.remaining())

    def serialize(self) -> bytes:
        """Return the frame's wire bytes."""
        return self.header.serialize() + bytes(self.payload)