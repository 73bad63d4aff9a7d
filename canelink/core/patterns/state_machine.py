import logging
from enum import Enum
from typing import Dict, Set

class ConnectionStatus(Enum):
    DISCONNECTED = "disconnected"
    CONNECTING   = "connecting"
    CONNECTED    = "connected"
    ERROR        = "error"
    FAILED       = "failed"

class StateMachine:
    """Connection status plus the table of transitions it may take."""

    def __init__(self, initial: ConnectionStatus = ConnectionStatus.DISCONNECTED):
        self._state = initial
        self.logger = logging.getLogger(self.__class__.__name__)
        self._trans: Dict[ConnectionStatus, Set[ConnectionStatus]] = {
            ConnectionStatus.DISCONNECTED: {ConnectionStatus.CONNECTING, ConnectionStatus.FAILED},
            ConnectionStatus.CONNECTING:   {ConnectionStatus.CONNECTED, ConnectionStatus.ERROR,
                                            ConnectionStatus.DISCONNECTED},
            ConnectionStatus.CONNECTED:    {ConnectionStatus.DISCONNECTED, ConnectionStatus.ERROR},
            ConnectionStatus.ERROR:        {ConnectionStatus.CONNECTING, ConnectionStatus.FAILED,
                                            ConnectionStatus.DISCONNECTED},
            ConnectionStatus.FAILED:       {ConnectionStatus.CONNECTING, ConnectionStatus.DISCONNECTED},
        }

    @property
    def state(self) -> ConnectionStatus: return self._state

    def can(self, nxt: ConnectionStatus) -> bool:
        return nxt == self._state or nxt in self._trans[self._state]

    def transition(self, nxt: ConnectionStatus) -> bool:
        if nxt == self._state:
            return True
        if self.can(nxt):
            self.logger.debug(f"State transition: {self._state.value} -> {nxt.value}")
            self._state = nxt
            return True
        self.logger.error(f"Invalid state transition: {self._state.value} -> {nxt.value}")
        return False
