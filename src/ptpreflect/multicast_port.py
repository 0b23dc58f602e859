"""UDP endpoint bound to one PTP port and joined to the PTP multicast group."""
from __future__ import annotations

import logging
import socket
import struct
from typing import Optional

PTP_GROUP = "224.0.1.129"
EVENT_PORT = 319
GENERAL_PORT = 320
RECV_BUFFER = 1024

PORT_NAMES = {EVENT_PORT: "event", GENERAL_PORT: "general"}


class PortError(OSError):
    def __init__(self, port: int, message: str):
        super().__init__(f"port {port}: {message}")
        self.port = port


class BindError(PortError):
    pass


class JoinError(PortError):
    pass


class ReceiveError(PortError):
    pass


class SendError(PortError):
    pass


class MulticastPort:
    """One socket, one port, one group.

    Datagrams are always resent to ``(group, port)``, never back to the
    sender's unicast address.
    """

    def __init__(self, port: int, group: str = PTP_GROUP, name: Optional[str] = None,
                 multicast_loop: bool = False, logger: Optional[logging.Logger] = None):
        self.port = port
        self.group = group
        self.name = name or PORT_NAMES.get(port, str(port))
        self.multicast_loop = multicast_loop
        self.logger = logger or logging.getLogger(__name__)
        self.sock = None

    @property
    def destination(self):
        return (self.group, self.port)

    def open(self) -> "MulticastPort":
        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM, socket.IPPROTO_UDP)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            sock.bind(("", self.port))
        except OSError as e:
            sock.close()
            raise BindError(self.port, f"could not bind {self.name} socket: {e}") from e

        mreq = struct.pack("4s4s", socket.inet_aton(self.group), socket.inet_aton("0.0.0.0"))
        try:
            sock.setsockopt(socket.IPPROTO_IP, socket.IP_ADD_MEMBERSHIP, mreq)
            sock.setsockopt(socket.IPPROTO_IP, socket.IP_MULTICAST_LOOP, int(self.multicast_loop))
        except OSError as e:
            sock.close()
            raise JoinError(self.port, f"could not join multicast group {self.group}: {e}") from e

        self.sock = sock
        self.logger.info(f"Listening on {self.group}:{self.port} ({self.name})")
        return self

    def fileno(self) -> int:
        return self.sock.fileno()

    def receive(self) -> bytes:
        try:
            data, _addr = self.sock.recvfrom(RECV_BUFFER)
        except OSError as e:
            raise ReceiveError(self.port, f"failed to read from {self.name} socket: {e}") from e
        return data

    def send(self, data: bytes, length: Optional[int] = None) -> int:
        if length is None:
            length = len(data)
        payload = bytes(data[:length])
        try:
            written = self.sock.sendto(payload, self.destination)
        except OSError as e:
            raise SendError(self.port, f"failed to send on {self.name} socket: {e}") from e
        if written != len(payload):
            self.logger.warning(f"written {written} != read {len(payload)} on {self.name} socket")
        return written

    def close(self):
        if self.sock is None:
            return
        mreq = struct.pack("4s4s", socket.inet_aton(self.group), socket.inet_aton("0.0.0.0"))
        try:
            self.sock.setsockopt(socket.IPPROTO_IP, socket.IP_DROP_MEMBERSHIP, mreq)
        except OSError as e:
            self.logger.debug(f"leaving {self.group} on {self.name} socket failed: {e}")
        self.sock.close()
        self.sock = None

    def __enter__(self):
        return self.open()

    def __exit__(self, *exc):
        self.close()
        return False

    def __repr__(self):
        return f"MulticastPort({self.name} {self.group}:{self.port})"
