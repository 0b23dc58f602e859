"""PTP header inspection and domain-swap mutation for the reflector.

Only a handful of header octets matter here:

    offset  0      low nibble = messageType
    offset  4      domainNumber
    offset 20..27  sourcePortIdentity.clockIdentity
    offset 44..51  requestingPortIdentity.clockIdentity (Delay_Resp only)

`transform` decides whether a datagram is relayed and returns the mutated
copy; it never touches the caller's buffer.
"""
from __future__ import annotations

import enum
from typing import Optional

MIN_LENGTH = 44
DELAY_RESP_MIN_LENGTH = 54

DOMAIN_OFFSET = 4
SOURCE_CLOCK_IDENTITY = slice(20, 28)
REQUESTING_CLOCK_IDENTITY = slice(44, 52)


class MsgType(enum.IntEnum):
    def __str__(self):
        return self.name
    # 0x00-0x03 carry event timestamps (port 319)
    SYNC = 0x00
    DELAY_REQ = 0x01
    PATH_DELAY_REQ = 0x02
    PATH_DELAY_RESP = 0x03
    # 0x08-0x0d general messages (port 320)
    FOLLOW_UP = 0x08
    DELAY_RESP = 0x09
    PATH_DELAY_RESP_FOLLOW_UP = 0x0A
    ANNOUNCE = 0x0B
    SIGNALLING = 0x0C
    MANAGEMENT = 0x0D


# domain 0 -> 1 carries the master side of the exchange
FROM_DOMAIN_0 = frozenset({MsgType.SYNC, MsgType.FOLLOW_UP, MsgType.ANNOUNCE})
# domain 1 -> 0 carries the slave's delay requests back
FROM_DOMAIN_1 = frozenset({MsgType.DELAY_REQ})


def _received(data: bytes, length: Optional[int]) -> int:
    if length is None or length > len(data):
        return len(data)
    return max(length, 0)


def _invert(buf: bytearray, span: slice):
    buf[span] = bytes(b ^ 0xFF for b in buf[span])


def swap_domain(data: bytes, length: Optional[int] = None, requesting: bool = False) -> bytes:
    """Apply one relay hop to a copy of ``data[:length]``.

    Domain 0 becomes 1 (anything else becomes 0) and the source clock
    identity is complemented; with ``requesting`` the Delay_Resp requesting
    clock identity is complemented as well. The operation is self-inverse.
    """
    n = _received(data, length)
    msg = bytearray(data[:n])
    if n < MIN_LENGTH or (requesting and n < DELAY_RESP_MIN_LENGTH):
        raise ValueError(f"datagram too short for a relay hop: {n} bytes")
    msg[DOMAIN_OFFSET] = 1 if msg[DOMAIN_OFFSET] == 0 else 0
    _invert(msg, SOURCE_CLOCK_IDENTITY)
    if requesting:
        _invert(msg, REQUESTING_CLOCK_IDENTITY)
    return bytes(msg)


def transform(data: bytes, length: Optional[int] = None) -> Optional[bytes]:
    """Return the bytes to re-multicast for ``data[:length]``, or None to drop."""
    n = _received(data, length)
    if n < MIN_LENGTH:
        return None

    domain = data[DOMAIN_OFFSET]
    msg_type = data[0] & 0x0F

    if domain == 0:
        if msg_type in FROM_DOMAIN_0:
            return swap_domain(data, n)
        if msg_type == MsgType.DELAY_RESP and n >= DELAY_RESP_MIN_LENGTH:
            return swap_domain(data, n, requesting=True)
        return None
    if domain == 1 and msg_type in FROM_DOMAIN_1:
        return swap_domain(data, n)
    return None


def build_message(msg_type: int, domain: int = 0, length: int = MIN_LENGTH,
                  clock_identity: bytes = b"\x00\x1b\x21\xff\xfe\x12\x34\x56",
                  sequence_id: int = 0) -> bytes:
    """Build a minimal PTPv2 datagram, zero-padded to ``length`` octets."""
    msg = bytearray(max(length, 34))
    msg[0] = msg_type & 0x0F
    msg[1] = 2  # versionPTP
    msg[2:4] = length.to_bytes(2, "big")
    msg[DOMAIN_OFFSET] = domain
    msg[SOURCE_CLOCK_IDENTITY] = clock_identity[:8].ljust(8, b"\x00")
    msg[28:30] = (1).to_bytes(2, "big")
    msg[30:32] = (sequence_id & 0xFFFF).to_bytes(2, "big")
    return bytes(msg[:length])


def describe(data: bytes, length: Optional[int] = None) -> str:
    """One-line summary such as ``SYNC domain=0 len=44`` for log output."""
    n = _received(data, length)
    if n == 0:
        return "empty len=0"
    try:
        name = str(MsgType(data[0] & 0x0F))
    except ValueError:
        name = f"type=0x{data[0] & 0x0F:x}"
    if n <= DOMAIN_OFFSET:
        return f"{name} len={n}"
    return f"{name} domain={data[DOMAIN_OFFSET]} len={n}"
