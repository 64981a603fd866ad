from __future__ import annotations

from enum import StrEnum

from statemachine import State, StateMachine


class ChannelPhase(StrEnum):
    connecting = "connecting"
    streaming = "streaming"
    failed = "failed"


class ChannelFSM(StateMachine):
    """Lifecycle of one live channel.

    - connecting: connection requested, nothing received yet.
    - streaming: at least one well-formed frame arrived since the last failure.
    - failed: transport error or malformed frame. Not final; a well-formed
      frame moves the channel back to streaming.
    """

    connecting = State(ChannelPhase.connecting.value, value=ChannelPhase.connecting.value, initial=True)
    streaming = State(ChannelPhase.streaming.value, value=ChannelPhase.streaming.value)
    failed = State(ChannelPhase.failed.value, value=ChannelPhase.failed.value)

    room_state_received = connecting.to(streaming) | streaming.to.itself() | failed.to(streaming)
    server_error_received = connecting.to(streaming) | streaming.to.itself() | failed.to(streaming)
    frame_rejected = connecting.to(failed) | streaming.to(failed) | failed.to.itself()
    transport_failed = connecting.to(failed) | streaming.to(failed) | failed.to.itself()

    @property
    def phase(self) -> ChannelPhase:
        return ChannelPhase(str(self.current_state_value))
