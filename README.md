# spongenet

A small, dependency-free library for the packets of a user-space TCP stack:
Ethernet frames, ARP messages, IPv4 datagrams and TCP segments. Each can be
parsed from bytes and serialized back to bytes. On parsing, the IPv4 header
checksum and the TCP checksum are verified; `IPv4Datagram.serialize` and
`TCPSegment.serialize` fill them in afresh.

## Installing

```
pip install .
```

Install with the `test` extra (`pip install .[test]`) to run the test suite
with `pytest`.

## Modules

- `spongenet.parsing`: `ByteReader`, which reads big-endian `u8`, `u16` and
  `u32` fields, can `skip` bytes and returns the `remaining` ones;
  `internet_checksum(data, initial=0)`; and `ParseError`, whose `result`
  attribute is a `ParseResult` saying why a packet was rejected
  (`PACKET_TOO_SHORT`, `WRONG_IP_VERSION`, `HEADER_TOO_SHORT`,
  `TRUNCATED_PACKET`, `BAD_CHECKSUM`, `UNSUPPORTED`).
- `spongenet.ethernet`: `EthernetHeader`, `EthernetFrame`,
  `format_ethernet_address` and the `ETHERNET_BROADCAST` address.
- `spongenet.arp`: `ARPMessage`, for Ethernet/IPv4 requests and replies.
  `supported()` tells whether the fields describe one; parsing an unsupported
  message raises `ParseError` and serializing one raises `ValueError`.
- `spongenet.ipv4`: `IPv4Header` (with `payload_length()`, `pseudo_cksum()`
  and a one-line `summary()`), `IPv4Datagram` and `format_ipv4`. Header
  options are skipped on parsing, not kept.
- `spongenet.tcp`: `TCPHeader` and `TCPSegment`. Sequence and acknowledgment
  numbers are raw 32-bit integers. Two headers compare equal when all fields
  but the ports and the checksum match. `length_in_sequence_space()` counts the
  payload plus one each for SYN and FIN.
- `spongenet.config`: `Endpoint` (an IPv4 host string and a port),
  `TCPConfig` and `FdAdapterConfig`. Out-of-range values raise `ValueError`.
- `spongenet.tcp_state`: `TCPState`, a pair of sender and receiver summary
  strings plus the `active` and `linger_after_streams_finish` flags; the
  `State` names from the TCP specification, which `TCPState.from_state` turns
  into such a summary; and the `TCPSenderStateSummary` and
  `TCPReceiverStateSummary` strings.
- `spongenet.adapters`:
  - `TCPOverUDPSocketAdapter` wraps a UDP `socket.socket`. `read()` receives
    one datagram and returns its `TCPSegment`, or `None` if it is invalid or
    not from the configured destination. While `listening` is true it waits
    for a SYN without RST and then takes the sender as its destination.
    `write()` sets the ports and sends the segment.
  - `TCPOverIPv4Adapter` converts between segments and IPv4 datagrams with
    `wrap_tcp_in_ip` and `unwrap_tcp_in_ip`, filtering by address, protocol
    and port in the same way.
  - `LossyFdAdapter` wraps either adapter and drops reads and writes at random,
    at the `loss_rate_dn` and `loss_rate_up` rates (out of 65536) in the
    configuration. It takes an optional random generator with a `getrandbits`
    method.

## Example

```python
from spongenet.adapters import TCPOverIPv4Adapter
from spongenet.config import Endpoint
from spongenet.ipv4 import IPv4Datagram
from spongenet.parsing import ParseError
from spongenet.tcp import TCPHeader, TCPSegment

adapter = TCPOverIPv4Adapter()
adapter.config.source = Endpoint("10.0.0.1", 1234)
adapter.config.destination = Endpoint("10.0.0.2", 80)

segment = TCPSegment(header=TCPHeader(seqno=1, syn=True), payload=b"hello")
wire = adapter.wrap_tcp_in_ip(segment).serialize()

try:
    datagram = IPv4Datagram.parse(wire)
    parsed = TCPSegment.parse(datagram.payload, datagram.header.pseudo_cksum())
except ParseError as error:
    print("rejected:", error.result)
else:
    print(datagram.header.summary())
    print(parsed.header.summary())
```

## What it does not do

The package holds packet formats, configuration and adapters only. It has no
TCP sender, receiver or connection state machine: nothing here retransmits,
reassembles a byte stream or decides which `State` a connection is in. It has
no socket-like wrapper that runs a connection in the background, no event
loop, no access to TUN or TAP devices, and no network interface that resolves
addresses with ARP. There is no command to run.