"""Shared fixtures and fake ports for reflector tests."""

import logging
from typing import List, Optional

import pytest

from ptpreflect.multicast_port import PTP_GROUP, ReceiveError, SendError


class FakePort:
    """In-memory stand-in for MulticastPort.

    ``inbox`` holds datagrams (or exceptions) to hand out on receive; every
    send lands in ``sent`` as ``(bytes, destination)``.
    """

    def __init__(self, port: int, name: str, fail_open: Optional[Exception] = None):
        self.port = port
        self.name = name
        self.group = PTP_GROUP
        self.fail_open = fail_open
        self.inbox: List = []
        self.sent: List = []
        self.send_error = False
        self.opened = False
        self.closed = False

    @property
    def destination(self):
        return (self.group, self.port)

    def open(self):
        if self.fail_open is not None:
            raise self.fail_open
        self.opened = True
        return self

    def close(self):
        self.closed = True

    def receive(self) -> bytes:
        item = self.inbox.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    def send(self, data: bytes, length: Optional[int] = None) -> int:
        if self.send_error:
            raise SendError(self.port, "network is unreachable")
        if length is None:
            length = len(data)
        self.sent.append((bytes(data[:length]), self.destination))
        return length

    def fail_next_receive(self):
        self.inbox.append(ReceiveError(self.port, "connection refused"))

    def __repr__(self):
        return f"FakePort({self.name}:{self.port})"


@pytest.fixture
def event_port():
    return FakePort(319, "event")


@pytest.fixture
def general_port():
    return FakePort(320, "general")


@pytest.fixture
def logger():
    return logging.getLogger("ptpreflect.tests")
