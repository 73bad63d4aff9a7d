import pytest

from canelink.core.patterns.state_machine import ConnectionStatus, StateMachine


@pytest.mark.parametrize("path", [
    [ConnectionStatus.CONNECTING, ConnectionStatus.CONNECTED, ConnectionStatus.DISCONNECTED],
    [ConnectionStatus.CONNECTING, ConnectionStatus.CONNECTED, ConnectionStatus.ERROR],
    [ConnectionStatus.CONNECTING, ConnectionStatus.ERROR, ConnectionStatus.CONNECTING],
    [ConnectionStatus.CONNECTING, ConnectionStatus.ERROR, ConnectionStatus.FAILED,
     ConnectionStatus.CONNECTING],
    [ConnectionStatus.FAILED, ConnectionStatus.DISCONNECTED],
])
def test_legal_paths(path):
    machine = StateMachine()
    for status in path:
        assert machine.transition(status)
    assert machine.state == path[-1]


@pytest.mark.parametrize("path, refused", [
    ([], ConnectionStatus.CONNECTED),
    ([ConnectionStatus.CONNECTING, ConnectionStatus.CONNECTED], ConnectionStatus.CONNECTING),
    ([ConnectionStatus.CONNECTING, ConnectionStatus.CONNECTED], ConnectionStatus.FAILED),
    ([ConnectionStatus.CONNECTING], ConnectionStatus.FAILED),
])
def test_illegal_transitions_are_refused(path, refused):
    machine = StateMachine()
    for status in path:
        machine.transition(status)
    before = machine.state
    assert not machine.transition(refused)
    assert machine.state == before


def test_same_state_is_a_no_op():
    machine = StateMachine()
    assert machine.can(ConnectionStatus.DISCONNECTED)
    assert machine.transition(ConnectionStatus.DISCONNECTED)
    assert machine.state == ConnectionStatus.DISCONNECTED
