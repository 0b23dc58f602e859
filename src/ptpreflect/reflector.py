"""PTP domain reflector.

Behaviors:
- Binds the PTP event (319) and general (320) ports and joins 224.0.1.129.
- Waits on both sockets, reads one datagram from each ready socket and runs
  it through `ptp_transform.transform`.
- Forwarded datagrams are multicast back onto the group on the port they
  arrived on, so domain 0 masters show up in domain 1 and domain 1 delay
  requests find their way back to domain 0.

Everything runs on one thread; the only blocking point is the readiness
wait, which has no timeout.
"""
from __future__ import annotations

import enum
import logging
import select
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence

from hexdump import hexdump

from .config import ReflectorConfig
from .multicast_port import EVENT_PORT, GENERAL_PORT, MulticastPort, ReceiveError, SendError
from .ptp_transform import describe, transform


class EngineState(enum.Enum):
    def __str__(self):
        return self.name
    INITIALIZING = "initializing"
    RUNNING = "running"


@dataclass
class PortStats:
    received: int = 0
    forwarded: int = 0
    dropped: int = 0
    errors: int = 0


class ReflectorEngine:
    def __init__(self, config: Optional[ReflectorConfig] = None,
                 ports: Optional[Sequence[MulticastPort]] = None,
                 logger: Optional[logging.Logger] = None,
                 select_fn: Callable = select.select):
        self.config = config or ReflectorConfig()
        self.logger = logger or logging.getLogger(__name__)
        self.select_fn = select_fn
        if ports is None:
            # event first: when both are ready its timestamps are the more sensitive
            ports = [
                MulticastPort(EVENT_PORT, multicast_loop=self.config.multicast_loop, logger=self.logger),
                MulticastPort(GENERAL_PORT, multicast_loop=self.config.multicast_loop, logger=self.logger),
            ]
        self.ports: List[MulticastPort] = list(ports)
        self.stats: Dict[str, PortStats] = {p.name: PortStats() for p in self.ports}
        self.state = EngineState.INITIALIZING

    def open(self):
        """Open every port or none of them."""
        opened = []
        try:
            for port in self.ports:
                port.open()
                opened.append(port)
        except OSError:
            for port in opened:
                port.close()
            raise
        self.state = EngineState.RUNNING
        self.logger.info(f"Reflector running on {', '.join(repr(p) for p in self.ports)}")

    def close(self):
        for port in self.ports:
            port.close()
        self.state = EngineState.INITIALIZING

    def handle(self, port: MulticastPort) -> Optional[bytes]:
        """Receive one datagram on ``port`` and reflect it if it qualifies.

        Returns the bytes sent, or None when nothing was sent.
        """
        stats = self.stats[port.name]
        try:
            data = port.receive()
        except ReceiveError as e:
            stats.errors += 1
            self.logger.error(str(e))
            return None

        stats.received += 1
        self.logger.debug(f"Received {len(data)} bytes from {port.name} socket: {describe(data)}")
        if self.config.dump_packets:
            self.logger.debug("\n" + hexdump(data, result="return"))

        out = transform(data, len(data))
        if out is None:
            stats.dropped += 1
            return None

        try:
            port.send(out, len(out))
        except SendError as e:
            stats.errors += 1
            self.logger.error(str(e))
            return None

        stats.forwarded += 1
        self.logger.debug(f"Sent {len(out)} bytes on {port.name} socket: {describe(out)}")
        return out

    def poll_once(self):
        """Wait until at least one port is readable, then handle each ready port once."""
        readable, _, _ = self.select_fn(self.ports, [], [])
        for port in sorted(readable, key=self.ports.index):
            self.handle(port)

    def run(self):
        if self.state is not EngineState.RUNNING:
            self.open()
        while True:
            self.poll_once()

    def summary(self) -> str:
        return ", ".join(
            f"{name}: rx={s.received} tx={s.forwarded} drop={s.dropped} err={s.errors}"
            for name, s in self.stats.items()
        )
