"""
Outbound event sinks.

The session coordinator addresses each registered player through one sink.
Delivery is a synchronous hand-off: a sink must queue the event and return
without waiting on the network, and it must keep events in the order they
were handed to it.
"""

from typing import Protocol, runtime_checkable

from shared.protocol import GameEvent


@runtime_checkable
class EventSink(Protocol):
    """Per-player outbound channel."""

    def deliver(self, event: GameEvent) -> None:
        """Queue an event for the player. May raise if the sink is broken."""
        ...

    def close(self) -> None:
        """Flush what is queued, then stop accepting events."""
        ...
