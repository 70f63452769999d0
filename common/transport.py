import errno
import socket

from common.config import BIND_HOST, BUFFER_SIZE

# Windows reports a lost exclusive bind as WSAEADDRINUSE or WSAEACCES
_WIN_IN_USE = {10048, 10013}


def get_local_address():
    """Address the host would use for outbound IPv4 traffic; None if unrouted."""
    s = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        # connect() on UDP only picks a route, nothing is sent
        s.connect(("8.8.8.8", 80))
        return s.getsockname()[0]
    except OSError:
        return None
    finally:
        s.close()


class PortInUseError(OSError):
    """Exclusive bind lost: another process owns the port."""


class TransportError(OSError):
    """Receive/send failure on an open endpoint."""


class UdpEndpoint:
    """
    One IPv4 datagram socket.
    - bind(port): exclusive listener (coordinator)
    - ephemeral(): OS-chosen port (contributor)
    """

    def __init__(self, sock: socket.socket):
        self.sock = sock
        self._broadcast_enabled = False
        self.closed = False

    @classmethod
    def bind(cls, port: int, host: str = BIND_HOST) -> "UdpEndpoint":
        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        # no SO_REUSEADDR / SO_REUSEPORT: the bind itself is the election
        if hasattr(socket, "SO_EXCLUSIVEADDRUSE"):
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_EXCLUSIVEADDRUSE, 1)
        try:
            sock.bind((host, port))
        except OSError as e:
            sock.close()
            if e.errno == errno.EADDRINUSE or getattr(e, "winerror", None) in _WIN_IN_USE:
                raise PortInUseError(e.errno, f"port {port} already bound") from e
            raise
        return cls(sock)

    @classmethod
    def ephemeral(cls) -> "UdpEndpoint":
        return cls(socket.socket(socket.AF_INET, socket.SOCK_DGRAM))

    @property
    def local_port(self) -> int:
        return self.sock.getsockname()[1]

    def recv(self):
        """Blocking receive; returns (data, (ip, port))."""
        try:
            return self.sock.recvfrom(BUFFER_SIZE)
        except OSError as e:
            raise TransportError(e.errno, f"receive failed: {e}") from e

    def send(self, data: bytes, addr):
        self.sock.sendto(data, addr)

    def broadcast(self, data: bytes, addr):
        if not self._broadcast_enabled:
            self.sock.setsockopt(socket.SOL_SOCKET, socket.SO_BROADCAST, 1)
            self._broadcast_enabled = True
        self.sock.sendto(data, addr)

    def close(self):
        if self.closed:
            return
        self.closed = True
        self.sock.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
        return False
