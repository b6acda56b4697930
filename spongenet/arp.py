"""ARP messages for Ethernet and IPv4."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import ClassVar

from spongenet.ethernet import ETHERNET_ADDRESS_LENGTH, EthernetHeader, format_ethernet_address
from spongenet.ipv4 import format_ipv4
from spongenet.parsing import ByteReader, ParseError, ParseResult

_IPV4_ADDRESS_LENGTH = 4


@dataclass
class ARPMessage:
    """An ARP request or reply."""

    LENGTH: ClassVar[int] = 28
    TYPE_ETHERNET: ClassVar[int] = 1
    OPCODE_REQUEST: ClassVar[int] = 1
    OPCODE_REPLY: ClassVar[int] = 2

    hardware_type: int = 1
    protocol_type: int = EthernetHeader.TYPE_IPv4
    hardware_address_size: int = ETHERNET_ADDRESS_LENGTH
    protocol_address_size: int = _IPV4_ADDRESS_LENGTH
    opcode: int = 0
    sender_ethernet_address: bytes = bytes(ETHERNET_ADDRESS_LENGTH)
    sender_ip_address: int = 0
    target_ethernet_address: bytes = bytes(ETHERNET_ADDRESS_LENGTH)
    target_ip_address: int = 0

    @classmethod
    def parse(cls, data: bytes) -> ARPMessage:
        """Parse an ARP message from the start of ``data``."""
        reader = ByteReader(data)
        if len(reader.remaining()) < cls.LENGTH:
            raise ParseError(ParseResult.PACKET_TOO_SHORT)
        message = cls(
            hardware_type=reader.u16(),
            protocol_type=reader.u16(),
            hardware_address_size=reader.u8(),
            protocol_address_size=reader.u8(),
            opcode=reader.u16(),
        )
        if not message.supported():
            raise ParseError(ParseResult.UNSUPPORTED)
        message.sender_ethernet_address = bytes(reader.u8() for _ in range(ETHERNET_ADDRESS_LENGTH))
        message.sender_ip_address = reader.u32()
        message.target_ethernet_address = bytes(reader.u8() for _ in range(ETHERNET_ADDRESS_LENGTH))
        message.target_ip_address = reader.u32()
        return message

    def supported(self) -> bool:
        """Whether this is an Ethernet/IPv4 request or reply."""
        return (
            self.hardware_type == self.TYPE_ETHERNET
            and self.protocol_type == EthernetHeader.TYPE_IPv4
            and self.hardware_address_size == ETHERNET_ADDRESS_LENGTH
            and self.protocol_address_size == _IPV4_ADDRESS_LENGTH
            and self.opcode in (self.OPCODE_REQUEST, self.OPCODE_REPLY)
        )

    def serialize(self) -> bytes:
        """Return the message's wire bytes."""
        if not self.supported():
            raise ValueError(
                "unsupported ARP field combination (must be Ethernet/IP, and request or reply)"
            )
        for name, address in (
            ("sender_ethernet_address", self.sender_ethernet_address),
            ("target_ethernet_address", self.target_ethernet_address),
        ):
            if len(address) != ETHERNET_ADDRESS_LENGTH:
                raise ValueError(f"{name} must be {ETHERNET_ADDRESS_LENGTH} bytes")
        return (
            struct.pack(
                "!HHBBH",
                self.hardware_type,
                self.protocol_type,
                self.hardware_address_size,
                self.protocol_address_size,
                self.opcode,
            )
            + bytes(self.sender_ethernet_address)
            + struct.pack("!I", self.sender_ip_address)
            + bytes(self.target_ethernet_address)
            + struct.pack("!I", self.target_ip_address)
        )

    def __str__(self) -> str:
        if self.opcode == self.OPCODE_REQUEST:
            opcode_name = "REQUEST"
        elif self.opcode == self.OPCODE_REPLY:
            opcode_name = "REPLY"
        else:
            opcode_name = "(unknown type)"
        return (
            f"opcode={opcode_name}, "
            f"sender={format_ethernet_address(self.sender_ethernet_address)}"
            f"/{format_ipv4(self.sender_ip_address)}, "
            f"target={format_ethernet_address(self.target_ethernet_address)}"
            f"/{format_ipv4(self.target_ip_address)}"
        )