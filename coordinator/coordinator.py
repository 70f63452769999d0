from common.config import FLUSH, IGNORE_ECHOED_AVERAGE, MASTER, TERMINATE
from common.log import log
from common.messages import Codec, Contribute, DecodeError, Flush, Terminate
from common.syslog import LOG_ERROR, LOG_INFO, LOG_WARN
from common.transport import TransportError
from coordinator.broadcast import BroadcastResolver
from coordinator.ledger import ValueLedger

RUNNING = "RUNNING"
TERMINATED = "TERMINATED"


class Coordinator:
    def __init__(self, endpoint, value, resolver=None, codec=None,
                 ignore_echo=IGNORE_ECHOED_AVERAGE, broadcast_port=None):
        """
        endpoint must provide:
          - recv() -> (data, addr), raising TransportError on I/O failure
          - broadcast(data, addr)
          - local_port
          - close()
        """
        self.endpoint = endpoint
        self.port = endpoint.local_port
        self.ledger = ValueLedger(value)
        self.codec = codec or Codec()
        self.resolver = resolver or BroadcastResolver(node_id=self.port)
        self.broadcast_port = broadcast_port if broadcast_port is not None else self.port

        self.ignore_echo = ignore_echo
        # average of the last flush whose broadcast loops back to our port,
        # cleared by the first echo it swallows
        self.pending_echo = None

        self.state = RUNNING
        self.exit_code = None

        self._event("MASTER_START", value=value, wire=self.codec.wire_format,
                    bcast=getattr(self.resolver, "policy", "-"), ignore_echo=ignore_echo)

    def _event(self, event, level="INFO", **fields):
        log(MASTER, self.port, event, level=level, **fields)
        sink = {"WARN": LOG_WARN, "ERROR": LOG_ERROR}.get(level, LOG_INFO)
        sink(event, node_id=self.port, event=event, **fields)

    @property
    def running(self) -> bool:
        return self.state == RUNNING

    # ------------------------------
    # main loop
    # ------------------------------
    def run(self) -> int:
        """Block until terminated; returns the process exit status."""
        while self.running:
            try:
                data, addr = self.endpoint.recv()
            except TransportError as e:
                self._event("RECV_FAIL", level="ERROR", reason=e)
                self._shutdown(1)
                break
            self.handle_datagram(data, addr)
        return self.exit_code

    def handle_datagram(self, data: bytes, addr=None):
        if not self.running:
            return

        try:
            signal = self.codec.decode(data)
        except DecodeError as e:
            self._event("DECODE_FAIL", level="WARN", addr=addr, reason=e)
            return

        if self._is_echo(signal):
            self.pending_echo = None
            self._event("ECHO_IGNORED", addr=addr, signal=type(signal).__name__)
            return

        if isinstance(signal, Flush):
            self.on_flush(addr)
        elif isinstance(signal, Terminate):
            self.on_terminate(addr)
        elif isinstance(signal, Contribute):
            self.on_contribute(signal.value, addr)

    # ------------------------------
    # signal handlers
    # ------------------------------
    def on_flush(self, addr=None):
        avg = self.ledger.average()
        self._event("FLUSH", addr=addr, avg=avg, count=len(self.ledger))
        sent = self.broadcast(self.codec.encode_average(avg))
        self.pending_echo = avg if sent and self.broadcast_port == self.port else None

    def on_terminate(self, addr=None):
        self._event("TERMINATE", addr=addr)
        self.broadcast(self.codec.encode_terminate())
        self._shutdown(0)

    def on_contribute(self, value: int, addr=None):
        self.ledger.append(value)
        self._event("VALUE_ADDED", addr=addr, value=value, values=self.ledger.values)

    # ------------------------------
    # helpers
    # ------------------------------
    def _is_echo(self, signal) -> bool:
        if self.pending_echo is None:
            return False
        if isinstance(signal, Contribute):
            return self.ignore_echo and signal.value == self.ledger.average()
        if self.codec.tagged:
            return False
        # plain wire: an average of 0 or -1 reads back as a control signal
        if isinstance(signal, Flush):
            return self.pending_echo == FLUSH
        if isinstance(signal, Terminate):
            return self.pending_echo == TERMINATE
        return False

    def broadcast(self, data: bytes) -> bool:
        target = self.resolver.resolve()
        if target is None:
            self._event("BCAST_SKIPPED", level="WARN", payload=data.decode("ascii"))
            return False

        dest = (target, self.broadcast_port)
        try:
            self.endpoint.broadcast(data, dest)
        except OSError as e:
            self._event("BCAST_TX_FAIL", level="WARN", addr=dest, reason=e)
            return False

        self._event("BCAST_TX", addr=dest, payload=data.decode("ascii"))
        return True

    def _shutdown(self, code: int):
        self.state = TERMINATED
        self.exit_code = code
        self.endpoint.close()
        level = "OK" if code == 0 else "ERROR"
        self._event("MASTER_STOP", level=level, exit_code=code)
