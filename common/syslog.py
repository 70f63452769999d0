# common/syslog.py
import socket
from datetime import datetime, timezone

from common import config
from common.transport import get_local_address

_sock = None


# ------------------------------
# Helpers
# ------------------------------
def _ts():
    return (
        datetime.now(timezone.utc)
        .isoformat(timespec="milliseconds")
        .replace("+00:00", "Z")
    )


def _socket():
    global _sock
    if _sock is None:
        _sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    return _sock


def _get_lan_ip():
    return get_local_address() or "127.0.0.1"


def _pri(severity: int):
    # PRI = facility * 8 + severity
    return (config.SYSLOG_FACILITY * 8) + severity


def _fmt(v):
    if v is None:
        return "-"
    if isinstance(v, tuple) and len(v) == 2:
        return f"{v[0]}:{v[1]}"
    return str(v)


def build_message(*, level: str, severity: int, message: str, node_id, **fields) -> str:
    """Render one RFC5424 line; structured fields go into the free-text part."""
    payload_parts = [
        f"level={level}",
        f"node_id={_fmt(node_id)}",
        f'msg="{message}"',
    ]
    for k in sorted(fields.keys()):
        if fields[k] is not None:
            payload_parts.append(f"{k}={_fmt(fields[k])}")

    return (
        f"<{_pri(severity)}>1 "
        f"{_ts()} "
        f"{_fmt(node_id)} "
        f"{config.SYSLOG_APP} "
        f"- - - "
        f"{' '.join(payload_parts)}"
    )


# ------------------------------
# Core syslog sender
# ------------------------------
def _send_syslog(*, level: str, severity: int, message: str, node_id, **fields):
    if not config.SYSLOG_ENABLED:
        return

    host = config.SYSLOG_HOST
    if host == "auto":
        host = _get_lan_ip()

    line = build_message(
        level=level, severity=severity, message=message, node_id=node_id, **fields
    )

    try:
        _socket().sendto(
            line.encode("utf-8", errors="replace"),
            (host, config.SYSLOG_PORT),
        )
    except OSError:
        pass


# ------------------------------
# SIP-STYLE PUBLIC API
# ------------------------------
def LOG_INFO(message: str, node_id=None, **fields):
    _send_syslog(level="INFO", severity=6, message=message, node_id=node_id, **fields)


def LOG_WARN(message: str, node_id=None, **fields):
    _send_syslog(level="WARN", severity=4, message=message, node_id=node_id, **fields)


def LOG_ERROR(message: str, node_id=None, **fields):
    _send_syslog(level="ERROR", severity=3, message=message, node_id=node_id, **fields)
