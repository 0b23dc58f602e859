#!/usr/bin/env python3
"""Send a domain 0 Sync to the PTP group and wait for its reflection.

Usage:
  ptp_probe.py [--timeout SECONDS] [--count N]

Run on a host on the same segment as a running `ptp-reflector`. Binding
port 319 usually needs root. Multicast loopback is enabled on the probe
socket so the probe also works on the reflector's own host.
"""
import argparse
import socket
import struct
import time

from ptpreflect.multicast_port import EVENT_PORT, PTP_GROUP, RECV_BUFFER
from ptpreflect.ptp_transform import MsgType, SOURCE_CLOCK_IDENTITY, build_message, describe, swap_domain


def main():
    p = argparse.ArgumentParser(description="Check that a PTP reflector is answering")
    p.add_argument("--timeout", type=float, default=2.0)
    p.add_argument("--count", type=int, default=3)
    args = p.parse_args()

    s = socket.socket(socket.AF_INET, socket.SOCK_DGRAM, socket.IPPROTO_UDP)
    s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    try:
        s.bind(("", EVENT_PORT))
    except OSError as e:
        print("Failed to bind port", EVENT_PORT, e)
        return 3

    try:
        mreq = struct.pack('4s4s', socket.inet_aton(PTP_GROUP), socket.inet_aton('0.0.0.0'))
        s.setsockopt(socket.IPPROTO_IP, socket.IP_ADD_MEMBERSHIP, mreq)
        s.setsockopt(socket.IPPROTO_IP, socket.IP_MULTICAST_LOOP, 1)
    except OSError as e:
        print("Failed to join multicast group", PTP_GROUP, e)
        s.close()
        return 4

    s.settimeout(args.timeout)
    answered = 0
    try:
        for seq in range(args.count):
            probe = build_message(MsgType.SYNC, domain=0, sequence_id=seq)
            expected = swap_domain(probe)
            s.sendto(probe, (PTP_GROUP, EVENT_PORT))
            print(f"TX {describe(probe)} seq={seq}")

            seen = False
            deadline = time.monotonic() + args.timeout
            while not seen and time.monotonic() < deadline:
                try:
                    data, addr = s.recvfrom(RECV_BUFFER)
                except socket.timeout:
                    break
                if data == expected:
                    print(f"RX {describe(data)} from {addr[0]} clock={data[SOURCE_CLOCK_IDENTITY].hex()}")
                    seen = True
            if seen:
                answered += 1
            else:
                print(f"no reflection for seq={seq}")
    except KeyboardInterrupt:
        pass
    finally:
        s.close()

    print(f"{answered}/{args.count} probes reflected")
    return 0 if answered else 1


if __name__ == '__main__':
    raise SystemExit(main())
