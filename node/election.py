from dataclasses import dataclass
from enum import Enum
from typing import Optional

from common.config import MASTER, SLAVE
from common.transport import PortInUseError, UdpEndpoint


class Role(Enum):
    COORDINATOR = MASTER
    CONTRIBUTOR = SLAVE


@dataclass
class Election:
    role: Role
    endpoint: Optional[UdpEndpoint] = None


class PortBindElection:
    """
    Leader election by exclusive bind: whoever binds the port first is the
    coordinator, everybody who hits "address in use" contributes.
    Exactly one attempt; other bind errors propagate.
    """

    def __init__(self, bind=UdpEndpoint.bind):
        self._bind = bind

    def elect(self, port: int) -> Election:
        try:
            endpoint = self._bind(port)
        except PortInUseError:
            return Election(Role.CONTRIBUTOR)
        return Election(Role.COORDINATOR, endpoint)


class FixedRoleElection:
    """Operator-chosen role. A forced coordinator still needs the port."""

    def __init__(self, role: Role, bind=UdpEndpoint.bind):
        self.role = role
        self._bind = bind

    def elect(self, port: int) -> Election:
        if self.role is Role.CONTRIBUTOR:
            return Election(Role.CONTRIBUTOR)
        return Election(Role.COORDINATOR, self._bind(port))
