from __future__ import annotations

import ssl
from dataclasses import dataclass
from functools import partial

from sockcheck.checks.results import Probe, ProbeFailure
from sockcheck.clients.sockets import (
    CONNECTION_LOST_MESSAGE,
    WRITABLE_CLOSED_MESSAGE,
    SecureTransport,
    Socket,
    SocketError,
    SocketOptions,
    connect,
)
from sockcheck.config import settings


PLAIN_PORT = 80
TLS_PORT = 443
POST_EOF_PAYLOAD = b"FOO"


@dataclass(frozen=True)
class Target:
    host: str
    plain_port: int = PLAIN_PORT
    tls_port: int = TLS_PORT
    ssl_context: ssl.SSLContext | None = None


def http_request(host: str) -> bytes:
    return f"GET / HTTP/1.0\r\nHost: {host}\r\n\r\n".encode("ascii")


async def _open(target: Target, port: int, options: SocketOptions) -> Socket:
    try:
        return await connect(target.host, port, options, ssl_context=target.ssl_context)
    except SocketError as exc:
        raise ProbeFailure(f"connect failed: {exc}") from exc


async def _request_response(sock: Socket, target: Target) -> bytes:
    try:
        await sock.write(http_request(target.host))
    except SocketError as exc:
        raise ProbeFailure(f"socket.write failed: {exc}") from exc

    try:
        return await sock.read_to_end()
    except SocketError as exc:
        raise ProbeFailure(f"socket.read_to_end failed: {exc}") from exc


async def _write_after_eof(sock: Socket) -> str | None:
    """Write once more after EOF and return the error text, if any."""
    try:
        await sock.write(POST_EOF_PAYLOAD)
    except SocketError as exc:
        return str(exc)
    return None


def classify_allow_half_open(error: str | None) -> None:
    # A peer that hung up may reset us; our own writer must not report itself closed.
    if error is None or error == CONNECTION_LOST_MESSAGE:
        return
    raise ProbeFailure(f"Unexpected error: {error}")


def classify_disallow_half_open(error: str | None) -> None:
    if error is None:
        raise ProbeFailure("Write after EOF succeeded.")
    if error == WRITABLE_CLOSED_MESSAGE:
        return
    raise ProbeFailure(f"Unexpected error: {error}")


async def check_no_ssl(target: Target) -> None:
    options = SocketOptions(secure_transport=SecureTransport.OFF)
    async with await _open(target, target.plain_port, options) as sock:
        await _request_response(sock, target)


async def check_ssl(target: Target) -> None:
    options = SocketOptions(secure_transport=SecureTransport.ON)
    async with await _open(target, target.tls_port, options) as sock:
        await _request_response(sock, target)


async def check_start_tls(target: Target) -> None:
    options = SocketOptions(secure_transport=SecureTransport.STARTTLS)
    async with await _open(target, target.tls_port, options) as plaintext:
        try:
            secure = await plaintext.start_tls()
        except SocketError as exc:
            raise ProbeFailure(f"start_tls failed: {exc}") from exc
        async with secure:
            await _request_response(secure, target)


async def check_allow_half_open(target: Target) -> None:
    options = SocketOptions(allow_half_open=True)
    async with await _open(target, target.tls_port, options) as sock:
        await _request_response(sock, target)
        classify_allow_half_open(await _write_after_eof(sock))


async def check_disallow_half_open(target: Target) -> None:
    options = SocketOptions(allow_half_open=False)
    async with await _open(target, target.tls_port, options) as sock:
        await _request_response(sock, target)
        classify_disallow_half_open(await _write_after_eof(sock))


def build_probes(target: Target | None = None) -> list[Probe]:
    if target is None:
        target = Target(host=settings.TARGET_HOST)
    return [
        Probe("NO_SSL", partial(check_no_ssl, target)),
        Probe("SSL", partial(check_ssl, target)),
        Probe("StartTls", partial(check_start_tls, target)),
        Probe("ALLOW_HALF_OPEN", partial(check_allow_half_open, target)),
        Probe("DISALLOW_HALF_OPEN", partial(check_disallow_half_open, target)),
    ]
