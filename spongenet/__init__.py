"""Ethernet, ARP, IPv4 and TCP packet formats, with adapters carrying TCP over UDP or IPv4."""

__version__ = "0.1.0"

__all__ = ["adapters", "arp", "config", "ethernet", "ipv4", "parsing", "tcp", "tcp_state"]