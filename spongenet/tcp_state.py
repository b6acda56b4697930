"""Official TCP states expressed as sender and receiver summaries."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Final


class State(enum.Enum):
    """Official state names from the TCP specification."""

    LISTEN = 0
    SYN_RCVD = 1
    SYN_SENT = 2
    ESTABLISHED = 3
    CLOSE_WAIT = 4
    LAST_ACK = 5
    FIN_WAIT_1 = 6
    FIN_WAIT_2 = 7
    CLOSING = 8
    TIME_WAIT = 9
    CLOSED = 10
    RESET = 11


class TCPReceiverStateSummary:
    """Summaries of a TCP receiver's state."""

    ERROR: Final = "error (connection was reset)"
    LISTEN: Final = "waiting for SYN: ackno is empty"
    SYN_RECV: Final = "SYN received (ackno exists), and input to stream hasn't ended"
    FIN_RECV: Final = "input to stream has ended"


class TCPSenderStateSummary:
    """Summaries of a TCP sender's state."""

    ERROR: Final = "error (connection was reset)"
    CLOSED: Final = "waiting for stream to begin (no SYN sent)"
    SYN_SENT: Final = "stream started but nothing acknowledged"
    SYN_ACKED: Final = "stream ongoing"
    FIN_SENT: Final = "stream finished (FIN sent) but not fully acknowledged"
    FIN_ACKED: Final = "stream finished and fully acknowledged"


_R = TCPReceiverStateSummary
_S = TCPSenderStateSummary

# state -> (receiver, sender, active, linger_after_streams_finish)
_OFFICIAL = {
    State.LISTEN: (_R.LISTEN, _S.CLOSED, True, True),
    State.SYN_RCVD: (_R.SYN_RECV, _S.SYN_SENT, True, True),
    State.SYN_SENT: (_R.LISTEN, _S.SYN_SENT, True, True),
    State.ESTABLISHED: (_R.SYN_RECV, _S.SYN_ACKED, True, True),
    State.CLOSE_WAIT: (_R.FIN_RECV, _S.SYN_ACKED, True, False),
    State.LAST_ACK: (_R.FIN_RECV, _S.FIN_SENT, True, False),
    State.CLOSING: (_R.FIN_RECV, _S.FIN_SENT, True, True),
    State.FIN_WAIT_1: (_R.SYN_RECV, _S.FIN_SENT, True, True),
    State.FIN_WAIT_2: (_R.SYN_RECV, _S.FIN_ACKED, True, True),
    State.TIME_WAIT: (_R.FIN_RECV, _S.FIN_ACKED, True, True),
    State.RESET: (_R.ERROR, _S.ERROR, False, False),
    State.CLOSED: (_R.FIN_RECV, _S.FIN_ACKED, False, False),
}


@dataclass(frozen=True)
class TCPState:
    """A connection's state: sender and receiver summaries plus two connection flags.

    A connection that is not active never lingers.
    """

    sender: str
    receiver: str
    active: bool = True
    linger_after_streams_finish: bool = True

    def __post_init__(self) -> None:
        if not self.active:
            object.__setattr__(self, "linger_after_streams_finish", False)

    @classmethod
    def from_state(cls, state: State) -> TCPState:
        """Return the summary that corresponds to an official state."""
        receiver, sender, active, linger = _OFFICIAL[State(state)]
        return cls(
            sender=sender,
            receiver=receiver,
            active=active,
            linger_after_streams_finish=linger,
        )

    def name(self) -> str:
        """Describe the state in one line."""
        return (
            f"sender=`{self.sender}`, receiver=`{self.receiver}`, "
            f"active={int(self.active)}, "
            f"linger_after_streams_finish={int(self.linger_after_streams_finish)}"
        )