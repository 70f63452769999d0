import errno

import pytest

from common.transport import PortInUseError, UdpEndpoint
from node.election import FixedRoleElection, PortBindElection, Role


@pytest.fixture
def free_port():
    with UdpEndpoint.bind(0, "127.0.0.1") as probe:
        return probe.local_port


def test_first_bind_wins_second_contributes(free_port):
    election = PortBindElection()
    first = election.elect(free_port)
    try:
        second = election.elect(free_port)
        assert first.role is Role.COORDINATOR
        assert first.endpoint is not None
        assert second.role is Role.CONTRIBUTOR
        assert second.endpoint is None
    finally:
        first.endpoint.close()


def test_port_free_again_after_coordinator_closes(free_port):
    election = PortBindElection()
    first = election.elect(free_port)
    first.endpoint.close()
    again = election.elect(free_port)
    try:
        assert again.role is Role.COORDINATOR
    finally:
        again.endpoint.close()


def test_exclusive_bind_raises_port_in_use(free_port):
    with UdpEndpoint.bind(free_port):
        with pytest.raises(PortInUseError):
            UdpEndpoint.bind(free_port)


def test_other_bind_errors_propagate():
    def bind(port):
        raise OSError(errno.EADDRNOTAVAIL, "cannot assign requested address")

    with pytest.raises(OSError) as exc:
        PortBindElection(bind=bind).elect(9000)
    assert not isinstance(exc.value, PortInUseError)


def test_single_attempt():
    calls = []

    def bind(port):
        calls.append(port)
        raise PortInUseError(errno.EADDRINUSE, "in use")

    assert PortBindElection(bind=bind).elect(9000).role is Role.CONTRIBUTOR
    assert calls == [9000]


def test_fixed_contributor_never_binds():
    def bind(port):
        raise AssertionError("should not bind")

    assert FixedRoleElection(Role.CONTRIBUTOR, bind=bind).elect(9000).role is Role.CONTRIBUTOR


def test_fixed_coordinator_bind_conflict_is_fatal(free_port):
    with UdpEndpoint.bind(free_port):
        with pytest.raises(PortInUseError):
            FixedRoleElection(Role.COORDINATOR).elect(free_port)
