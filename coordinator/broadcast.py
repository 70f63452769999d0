import ipaddress
import socket

import psutil

from common.config import (
    BROADCAST_LIMITED,
    BROADCAST_POLICY,
    BROADCAST_SUBNET,
    LIMITED_BROADCAST,
    MASTER,
)
from common.log import log
from common.syslog import LOG_WARN
from common.transport import get_local_address


def compute_broadcast_address(address: str, prefix_length: int) -> str:
    """address | ~mask, with mask = top `prefix_length` bits set."""
    if not 0 <= prefix_length <= 32:
        raise ValueError(f"prefix length out of range: {prefix_length}")
    ip = int(ipaddress.IPv4Address(address))
    mask = (0xFFFFFFFF << (32 - prefix_length)) & 0xFFFFFFFF
    return str(ipaddress.IPv4Address(ip | (~mask & 0xFFFFFFFF)))


def netmask_to_prefix(netmask: str) -> int:
    return ipaddress.IPv4Network(f"0.0.0.0/{netmask}").prefixlen


def get_interfaces():
    """Interface name -> [(family, address, netmask), ...]."""
    table = {}
    for name, addrs in psutil.net_if_addrs().items():
        table[name] = [(a.family, a.address, a.netmask) for a in addrs]
    return table


class BroadcastResolver:
    """
    Picks the destination for coordinator broadcasts.

    policy:
      - "subnet":  derive from the interface owning the local address
      - "limited": 255.255.255.255
      - any IPv4 literal: used as-is

    resolve() never raises; None means the broadcast has to be skipped.
    """

    def __init__(self, policy=BROADCAST_POLICY, node_id="-",
                 local_address=get_local_address, interfaces=get_interfaces):
        if policy not in (BROADCAST_SUBNET, BROADCAST_LIMITED):
            # validates fixed addresses up front
            ipaddress.IPv4Address(policy)
        self.policy = policy
        self.node_id = node_id
        self._local_address = local_address
        self._interfaces = interfaces

    def resolve(self):
        if self.policy == BROADCAST_LIMITED:
            return LIMITED_BROADCAST
        if self.policy != BROADCAST_SUBNET:
            return self.policy
        return self._resolve_subnet()

    def _fail(self, event: str, **fields):
        log(MASTER, self.node_id, event, level="WARN", **fields)
        LOG_WARN(event, node_id=self.node_id, event=event, **fields)
        return None

    def _resolve_subnet(self):
        try:
            address = self._local_address()
        except OSError:
            address = None
        if not address:
            return self._fail("NO_LOCAL_ADDRESS")

        try:
            interfaces = self._interfaces()
        except (OSError, psutil.Error) as e:
            return self._fail("NO_INTERFACE", addr=address, reason=e)

        owner = None
        for name, entries in interfaces.items():
            if any(fam == socket.AF_INET and ip == address for fam, ip, _ in entries):
                owner = name
                break
        if owner is None:
            return self._fail("NO_INTERFACE", addr=address)

        prefix = None
        candidates = [e for e in interfaces[owner] if e[0] == socket.AF_INET and e[2]]
        # prefer the entry carrying our address, else any IPv4 entry on the interface
        candidates.sort(key=lambda e: e[1] != address)
        for _, _, netmask in candidates:
            try:
                prefix = netmask_to_prefix(netmask)
                break
            except ValueError:
                continue
        if prefix is None:
            return self._fail("NO_PREFIX_LENGTH", addr=address, iface=owner)

        return compute_broadcast_address(address, prefix)
