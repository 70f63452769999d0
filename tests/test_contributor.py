import socket

from common.config import WIRE_TAGGED
from common.messages import Codec
from contributor.contributor import contribute


class RecordingEndpoint:
    def __init__(self, fail=False):
        self.fail = fail
        self.sent = []
        self.closed = False

    def send(self, data, addr):
        if self.fail:
            raise OSError("network is unreachable")
        self.sent.append((data, addr))

    def close(self):
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
        return False


def test_sends_one_datagram_and_closes():
    ep = RecordingEndpoint()
    assert contribute(9000, 20, endpoint_factory=lambda: ep) == 0
    assert ep.sent == [(b"20", ("localhost", 9000))]
    assert ep.closed


def test_custom_coordinator_host_and_tagged_wire():
    ep = RecordingEndpoint()
    code = contribute(9000, 0, host="10.0.0.7", codec=Codec(WIRE_TAGGED), endpoint_factory=lambda: ep)
    assert code == 0
    assert ep.sent == [(b"C0", ("10.0.0.7", 9000))]


def test_send_failure_is_fatal():
    ep = RecordingEndpoint(fail=True)
    assert contribute(9000, 20, endpoint_factory=lambda: ep) == 1
    assert ep.closed


def test_real_socket_delivery():
    rx = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    rx.bind(("127.0.0.1", 0))
    rx.settimeout(2.0)
    try:
        port = rx.getsockname()[1]
        assert contribute(port, -42, host="127.0.0.1") == 0
        data, _ = rx.recvfrom(1024)
        assert data == b"-42"
    finally:
        rx.close()
