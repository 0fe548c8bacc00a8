"""
bmswatch.transport
AUTHOR: carter-vin

Best-effort datagram channel between the BMS and the vehicle monitor

Contract:
- send: fire-and-forget, no confirmation, may drop silently
- receive: waits at most timeout_s, returns TIMED_OUT when nothing arrived
- no ordering, no dedup, no fragmentation (payloads are one small packet)

Failure semantics:
- bind failures raise TransportBindError (the monitor cannot run without an endpoint)
- timeouts are data, not exceptions
"""

from __future__ import annotations

import socket
from dataclasses import dataclass
from typing import Protocol, Union

MAX_DATAGRAM_BYTES = 1024


class TimedOut:
    """
    Sentinel type for an expired receive window
    """

    _instance: "TimedOut | None" = None

    def __new__(cls) -> "TimedOut":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "TIMED_OUT"

    def __bool__(self) -> bool:
        return False


TIMED_OUT = TimedOut()


@dataclass(frozen=True)
class Datagram:
    payload: bytes
    source: tuple[str, int]


ReceiveResult = Union[Datagram, TimedOut]


class TransportBindError(OSError):
    """
    Endpoint could not be opened; fatal for the monitor
    """

    def __init__(self, host: str, port: int, cause: OSError) -> None:
        super().__init__(f"cannot bind udp {host}:{port}: {cause.strerror or cause}")
        self.errno = cause.errno
        self.host = host
        self.port = port


class Transport(Protocol):
    def send(self, address: tuple[str, int], payload: bytes) -> bool: ...

    def receive(self, timeout_s: float) -> ReceiveResult: ...

    def close(self) -> None: ...


class UdpTransport:
    """
    One UDP socket, used either as the monitor's listening endpoint or
    the emitter's ephemeral sending endpoint
    """

    def __init__(self, sock: socket.socket) -> None:
        self._sock = sock
        self._closed = False

    @classmethod
    def bind(cls, host: str, port: int) -> "UdpTransport":
        try:
            sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        except OSError as e:
            raise TransportBindError(host, port, e) from e

        try:
            sock.bind((host, port))
        except OSError as e:
            sock.close()
            raise TransportBindError(host, port, e) from e

        return cls(sock)

    @classmethod
    def ephemeral(cls) -> "UdpTransport":
        # OS assigns the local port on first send
        return cls(socket.socket(socket.AF_INET, socket.SOCK_DGRAM))

    @property
    def local_address(self) -> tuple[str, int]:
        return self._sock.getsockname()

    def send(self, address: tuple[str, int], payload: bytes) -> bool:
        """
        Hand one datagram to the OS

        Returns False instead of raising; a lost heartbeat is indistinguishable
        from a dropped one as far as the monitor is concerned
        """
        try:
            self._sock.sendto(payload, address)
        except OSError:
            return False
        return True

    def receive(self, timeout_s: float) -> ReceiveResult:
        """
        Wait up to timeout_s for one datagram

        timeout_s <= 0 is a non-blocking poll
        """
        self._sock.settimeout(max(0.0, timeout_s))
        try:
            payload, source = self._sock.recvfrom(MAX_DATAGRAM_BYTES)
        except (socket.timeout, BlockingIOError):
            return TIMED_OUT
        return Datagram(payload=payload, source=(source[0], source[1]))

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._sock.close()

    def __enter__(self) -> "UdpTransport":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
