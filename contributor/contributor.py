from common.config import DEFAULT_COORDINATOR_HOST, SLAVE
from common.log import log
from common.messages import Codec
from common.syslog import LOG_ERROR, LOG_INFO
from common.transport import UdpEndpoint


def contribute(port: int, value: int, host: str = DEFAULT_COORDINATOR_HOST,
               codec=None, endpoint_factory=UdpEndpoint.ephemeral) -> int:
    """Fire-and-forget: send one value to the coordinator. Returns the exit status."""
    codec = codec or Codec()
    data = codec.encode_value(value)

    log(SLAVE, port, "SLAVE_START", value=value, target=(host, port))

    try:
        with endpoint_factory() as endpoint:
            endpoint.send(data, (host, port))
    except OSError as e:
        log(SLAVE, port, "SEND_FAIL", level="ERROR", target=(host, port), reason=e)
        LOG_ERROR("SEND_FAIL", node_id=port, event="SEND_FAIL", addr=(host, port), reason=e)
        return 1

    log(SLAVE, port, "VALUE_SENT", level="OK", value=value, target=(host, port))
    LOG_INFO("VALUE_SENT", node_id=port, event="VALUE_SENT", addr=(host, port), value=value)
    return 0
