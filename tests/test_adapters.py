import socket

import pytest

from spongenet.adapters import (
    FdAdapterBase,
    LossyFdAdapter,
    TCPOverIPv4Adapter,
    TCPOverUDPSocketAdapter,
)
from spongenet.config import Endpoint, FdAdapterConfig
from spongenet.ipv4 import IPv4Datagram, IPv4Header
from spongenet.tcp import TCPHeader, TCPSegment

HOST_A = "10.0.0.1"
HOST_B = "10.0.0.2"


def _ip_adapter(source, destination, listening=False):
    adapter = TCPOverIPv4Adapter()
    adapter.config = FdAdapterConfig(source=source, destination=destination)
    adapter.listening = listening
    return adapter


def _segment(payload=b"hello", **flags):
    return TCPSegment(header=TCPHeader(seqno=1000, ackno=2000, win=500, **flags), payload=payload)


# ---- FdAdapterBase ----


def test_base_defaults():
    base = FdAdapterBase()
    assert base.listening is False
    assert base.config == FdAdapterConfig()
    base.tick(10)
    assert base.listening is False


# ---- TCPOverIPv4Adapter ----


def test_wrap_sets_ports_addresses_and_length():
    a = _ip_adapter(Endpoint(HOST_A, 80), Endpoint(HOST_B, 1234))
    seg = _segment()
    dgram = a.wrap_tcp_in_ip(seg)
    assert seg.header.sport == 80
    assert seg.header.dport == 1234
    assert dgram.header.src == Endpoint(HOST_A).ipv4_numeric()
    assert dgram.header.dst == Endpoint(HOST_B).ipv4_numeric()
    assert dgram.header.proto == IPv4Header.PROTO_TCP
    assert dgram.header.len == IPv4Header.LENGTH + TCPHeader.LENGTH + len(b"hello")
    assert dgram.header.payload_length() == len(dgram.payload)


def test_wrap_then_unwrap_round_trip():
    a = _ip_adapter(Endpoint(HOST_A, 80), Endpoint(HOST_B, 1234))
    b = _ip_adapter(Endpoint(HOST_B, 1234), Endpoint(HOST_A, 80))
    wire = a.wrap_tcp_in_ip(_segment(ack=True)).serialize()
    seg = b.unwrap_tcp_in_ip(IPv4Datagram.parse(wire))
    assert seg is not None
    assert seg.payload == b"hello"
    assert seg.header.sport == 80
    assert seg.header.dport == 1234
    assert seg.header == _segment(ack=True).header


def test_unwrap_rejects_wrong_destination_address():
    a = _ip_adapter(Endpoint(HOST_A, 80), Endpoint(HOST_B, 1234))
    other = _ip_adapter(Endpoint("10.0.0.3", 1234), Endpoint(HOST_A, 80))
    dgram = a.wrap_tcp_in_ip(_segment())
    assert other.unwrap_tcp_in_ip(dgram) is None


def test_unwrap_rejects_wrong_source_address():
    a = _ip_adapter(Endpoint(HOST_A, 80), Endpoint(HOST_B, 1234))
    b = _ip_adapter(Endpoint(HOST_B, 1234), Endpoint("10.0.0.9", 80))
    assert b.unwrap_tcp_in_ip(a.wrap_tcp_in_ip(_segment())) is None


def test_unwrap_rejects_wrong_ports():
    a = _ip_adapter(Endpoint(HOST_A, 80), Endpoint(HOST_B, 1234))
    wrong_dport = _ip_adapter(Endpoint(HOST_B, 9999), Endpoint(HOST_A, 80))
    wrong_sport = _ip_adapter(Endpoint(HOST_B, 1234), Endpoint(HOST_A, 81))
    assert wrong_dport.unwrap_tcp_in_ip(a.wrap_tcp_in_ip(_segment())) is None
    assert wrong_sport.unwrap_tcp_in_ip(a.wrap_tcp_in_ip(_segment())) is None


def test_unwrap_rejects_non_tcp_protocol():
    a = _ip_adapter(Endpoint(HOST_A, 80), Endpoint(HOST_B, 1234))
    b = _ip_adapter(Endpoint(HOST_B, 1234), Endpoint(HOST_A, 80))
    dgram = a.wrap_tcp_in_ip(_segment())
    dgram.header.proto = 17
    assert b.unwrap_tcp_in_ip(dgram) is None


def test_unwrap_rejects_bad_tcp_checksum():
    a = _ip_adapter(Endpoint(HOST_A, 80), Endpoint(HOST_B, 1234))
    b = _ip_adapter(Endpoint(HOST_B, 1234), Endpoint(HOST_A, 80))
    dgram = a.wrap_tcp_in_ip(_segment())
    corrupted = bytearray(dgram.payload)
    corrupted[-1] ^= 0xFF
    dgram.payload = bytes(corrupted)
    assert b.unwrap_tcp_in_ip(dgram) is None


def test_listening_accepts_syn_and_records_peer():
    client = _ip_adapter(Endpoint(HOST_A, 5555), Endpoint(HOST_B, 80))
    server = _ip_adapter(Endpoint("0", 80), Endpoint("0", 0), listening=True)
    dgram = client.wrap_tcp_in_ip(_segment(payload=b"", syn=True))
    seg = server.unwrap_tcp_in_ip(dgram)
    assert seg is not None and seg.header.syn
    assert server.listening is False
    assert server.config.source == Endpoint(HOST_B, 80)
    assert server.config.destination == Endpoint(HOST_A, 5555)


def test_listening_ignores_non_syn_and_rst():
    client = _ip_adapter(Endpoint(HOST_A, 5555), Endpoint(HOST_B, 80))
    server = _ip_adapter(Endpoint("0", 80), Endpoint("0", 0), listening=True)
    assert server.unwrap_tcp_in_ip(client.wrap_tcp_in_ip(_segment(ack=True))) is None
    assert server.unwrap_tcp_in_ip(client.wrap_tcp_in_ip(_segment(syn=True, rst=True))) is None
    assert server.listening is True
    assert server.config.destination == Endpoint("0", 0)


# ---- TCPOverUDPSocketAdapter ----


@pytest.fixture
def udp_pair():
    ours = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    peer = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    for sock in (ours, peer):
        sock.bind(("127.0.0.1", 0))
        sock.settimeout(2)
    yield ours, peer
    ours.close()
    peer.close()


def test_udp_listening_accepts_syn_then_writes_back(udp_pair):
    ours, peer = udp_pair
    adapter = TCPOverUDPSocketAdapter(ours)
    adapter.config = FdAdapterConfig(source=Endpoint("127.0.0.1", ours.getsockname()[1]))
    adapter.listening = True
    assert adapter.fileno() == ours.fileno()

    peer.sendto(_segment(payload=b"", syn=True).serialize(), ours.getsockname())
    seg = adapter.read()
    assert seg is not None and seg.header.syn
    assert adapter.listening is False
    assert adapter.config.destination == Endpoint("127.0.0.1", peer.getsockname()[1])

    reply = _segment(payload=b"data", ack=True)
    adapter.write(reply)
    data, _ = peer.recvfrom(65536)
    received = TCPSegment.parse(data)
    assert received.payload == b"data"
    assert received.header.sport == ours.getsockname()[1]
    assert received.header.dport == peer.getsockname()[1]


def test_udp_listening_ignores_non_syn(udp_pair):
    ours, peer = udp_pair
    adapter = TCPOverUDPSocketAdapter(ours)
    adapter.listening = True
    peer.sendto(_segment(ack=True).serialize(), ours.getsockname())
    assert adapter.read() is None
    assert adapter.listening is True


def test_udp_rejects_unknown_sender_and_garbage(udp_pair):
    ours, peer = udp_pair
    adapter = TCPOverUDPSocketAdapter(ours)
    adapter.config = FdAdapterConfig(destination=Endpoint("127.0.0.1", 1))
    peer.sendto(_segment().serialize(), ours.getsockname())
    assert adapter.read() is None

    adapter.config.destination = Endpoint("127.0.0.1", peer.getsockname()[1])
    peer.sendto(b"\x01\x02\x03", ours.getsockname())
    assert adapter.read() is None

    peer.sendto(_segment().serialize(), ours.getsockname())
    seg = adapter.read()
    assert seg is not None and seg.payload == b"hello"


# ---- LossyFdAdapter ----


class _FixedBits:
    def __init__(self, value):
        self.value = value

    def getrandbits(self, k):
        return self.value


class _RecordingAdapter(FdAdapterBase):
    def __init__(self):
        super().__init__()
        self.reads = 0
        self.written = []
        self.ticks = []

    def read(self):
        self.reads += 1
        return _segment()

    def write(self, seg):
        self.written.append(seg)

    def tick(self, ms_since_last_tick):
        self.ticks.append(ms_since_last_tick)


def test_lossy_never_drops_with_zero_loss():
    inner = _RecordingAdapter()
    lossy = LossyFdAdapter(inner, _FixedBits(0))
    assert lossy.read() is not None
    lossy.write(_segment())
    assert len(inner.written) == 1


def test_lossy_drops_read_below_rate_but_still_reads():
    inner = _RecordingAdapter()
    inner.config.loss_rate_dn = 100
    assert LossyFdAdapter(inner, _FixedBits(99)).read() is None
    assert inner.reads == 1
    assert LossyFdAdapter(inner, _FixedBits(100)).read() is not None
    # only the low 16 bits of the random value count
    assert LossyFdAdapter(inner, _FixedBits(0x10005)).read() is None


def test_lossy_drops_write_by_uplink_rate():
    inner = _RecordingAdapter()
    inner.config.loss_rate_up = 100
    LossyFdAdapter(inner, _FixedBits(50)).write(_segment())
    assert inner.written == []
    LossyFdAdapter(inner, _FixedBits(200)).write(_segment())
    assert len(inner.written) == 1


def test_lossy_passthroughs():
    inner = _RecordingAdapter()
    lossy = LossyFdAdapter(inner)
    lossy.set_listening(True)
    assert inner.listening is True
    assert lossy.config is inner.config
    lossy.tick(7)
    assert inner.ticks == [7]