import socket

from common import config, syslog
from common.log import format_line


def test_format_line_sorts_fields_and_flattens_addresses():
    line = format_line("MASTER", 9000, "FLUSH", avg=15, addr=("127.0.0.1", 4000))
    assert " role=MASTER id=9000 lvl=INFO event=FLUSH " in line
    assert line.endswith("addr=127.0.0.1:4000 avg=15")


def test_format_line_lists():
    line = format_line("MASTER", 9000, "VALUE_ADDED", values=[10, 20])
    assert line.endswith("values=[10,20]")


def test_syslog_message_header():
    msg = syslog.build_message(level="WARN", severity=4, message="DECODE_FAIL",
                               node_id=9000, addr=("10.0.0.2", 5000), reason=None)
    assert msg.startswith(f"<{config.SYSLOG_FACILITY * 8 + 4}>1 ")
    assert f" 9000 {config.SYSLOG_APP} - - - " in msg
    assert 'msg="DECODE_FAIL"' in msg
    assert "addr=10.0.0.2:5000" in msg
    assert "reason=" not in msg


def test_syslog_disabled_sends_nothing(monkeypatch):
    monkeypatch.setattr(config, "SYSLOG_ENABLED", False)
    monkeypatch.setattr(syslog, "_sock", None)
    syslog.LOG_INFO("FLUSH", node_id=9000, avg=1)
    assert syslog._sock is None


def test_syslog_enabled_sends_datagram(monkeypatch):
    collector = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    collector.bind(("127.0.0.1", 0))
    collector.settimeout(2.0)
    try:
        monkeypatch.setattr(config, "SYSLOG_ENABLED", True)
        monkeypatch.setattr(config, "SYSLOG_HOST", "127.0.0.1")
        monkeypatch.setattr(config, "SYSLOG_PORT", collector.getsockname()[1])
        syslog.LOG_ERROR("RECV_FAIL", node_id=9000)
        data, _ = collector.recvfrom(4096)
        assert b'msg="RECV_FAIL"' in data
        assert data.startswith(f"<{config.SYSLOG_FACILITY * 8 + 3}>1".encode())
    finally:
        collector.close()


def test_auto_syslog_host_falls_back_to_loopback(monkeypatch):
    monkeypatch.setattr(syslog, "get_local_address", lambda: None)
    assert syslog._get_lan_ip() == "127.0.0.1"
    monkeypatch.setattr(syslog, "get_local_address", lambda: "192.168.1.37")
    assert syslog._get_lan_ip() == "192.168.1.37"
