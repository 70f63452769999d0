import argparse
import ipaddress
import sys

from common.config import (
    BROADCAST_LIMITED,
    BROADCAST_POLICY,
    BROADCAST_SUBNET,
    DEFAULT_COORDINATOR_HOST,
    IGNORE_ECHOED_AVERAGE,
    WIRE_FORMAT,
    WIRE_PLAIN,
    WIRE_TAGGED,
)
from common.log import log
from common.messages import Codec, DecodeError, parse_int
from contributor.contributor import contribute
from coordinator.broadcast import BroadcastResolver
from coordinator.coordinator import Coordinator
from node.election import FixedRoleElection, PortBindElection, Role


def _port(text):
    try:
        port = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError("must be an integer between 0 and 65535")
    if not 0 <= port <= 65535:
        raise argparse.ArgumentTypeError("must be an integer between 0 and 65535")
    return port


def _value(text):
    try:
        return parse_int(text.strip())
    except DecodeError:
        raise argparse.ArgumentTypeError("must be a 32-bit signed integer")


def _broadcast(text):
    if text in (BROADCAST_SUBNET, BROADCAST_LIMITED):
        return text
    try:
        return str(ipaddress.IPv4Address(text))
    except ValueError:
        raise argparse.ArgumentTypeError("expected 'subnet', 'limited' or an IPv4 address")


def build_parser():
    p = argparse.ArgumentParser(
        prog="das-node",
        description="Bind <port>: the winner averages values (MASTER), everybody else sends <value> and exits (SLAVE).",
    )
    p.add_argument("port", type=_port, help="UDP port shared by all nodes (0-65535)")
    p.add_argument("value", type=_value, help="integer contributed by this node")
    p.add_argument("--broadcast", type=_broadcast, default=BROADCAST_POLICY,
                   help="broadcast destination: subnet, limited or an IPv4 address (default: %(default)s)")
    p.add_argument("--broadcast-port", type=_port, default=None,
                   help="destination port for broadcasts (default: the bound port)")
    p.add_argument("--coordinator-host", default=DEFAULT_COORDINATOR_HOST,
                   help="where a SLAVE sends its value (default: %(default)s)")
    p.add_argument("--wire", choices=[WIRE_PLAIN, WIRE_TAGGED], default=WIRE_FORMAT,
                   help="datagram format (default: %(default)s)")
    p.add_argument("--ignore-echo", action=argparse.BooleanOptionalAction,
                   default=IGNORE_ECHOED_AVERAGE,
                   help="skip a value equal to the average right after a flush")
    p.add_argument("--role", choices=["auto", "coordinator", "contributor"], default="auto",
                   help="auto = elect by binding the port")
    return p


def make_election(role: str):
    if role == "coordinator":
        return FixedRoleElection(Role.COORDINATOR)
    if role == "contributor":
        return FixedRoleElection(Role.CONTRIBUTOR)
    return PortBindElection()


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    codec = Codec(args.wire)

    try:
        election = make_election(args.role).elect(args.port)
    except OSError as e:
        log("NODE", args.port, "BIND_FAIL", level="ERROR", reason=e)
        return 1

    if election.role is Role.CONTRIBUTOR:
        log(Role.CONTRIBUTOR.value, args.port, "ROLE_SELECTED")
        return contribute(args.port, args.value, host=args.coordinator_host, codec=codec)

    log(Role.COORDINATOR.value, election.endpoint.local_port, "ROLE_SELECTED")
    coordinator = Coordinator(
        election.endpoint,
        args.value,
        resolver=BroadcastResolver(args.broadcast, node_id=election.endpoint.local_port),
        codec=codec,
        ignore_echo=args.ignore_echo,
        broadcast_port=args.broadcast_port,
    )
    return coordinator.run()


if __name__ == "__main__":
    sys.exit(main())
