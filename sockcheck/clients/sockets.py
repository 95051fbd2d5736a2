from __future__ import annotations

import asyncio
import enum
import logging
import ssl
from dataclasses import dataclass, replace


logger = logging.getLogger(__name__)

# Error texts surfaced by the socket runtime. Callers match these exactly.
WRITABLE_CLOSED_MESSAGE = "TypeError: This WritableStream has been closed."
CONNECTION_LOST_MESSAGE = "Error: Network connection lost."


class SocketError(RuntimeError):
    pass


class SocketConnectError(SocketError):
    pass


class SecureTransport(str, enum.Enum):
    OFF = "off"
    ON = "on"
    STARTTLS = "starttls"


@dataclass(frozen=True)
class SocketOptions:
    secure_transport: SecureTransport = SecureTransport.OFF
    allow_half_open: bool = False


def _describe(exc: BaseException) -> str:
    return f"{exc.__class__.__name__}: {exc}"


def _default_ssl_context() -> ssl.SSLContext:
    return ssl.create_default_context()


class Socket:
    """Bidirectional byte stream over an asyncio connection.

    With ``allow_half_open`` disabled, reading the peer's end-of-stream also
    closes the local write side, so later writes fail with
    ``WRITABLE_CLOSED_MESSAGE``. With it enabled the write side stays open
    until the connection itself is lost.
    """

    def __init__(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
        *,
        host: str,
        options: SocketOptions,
        ssl_context: ssl.SSLContext | None = None,
    ) -> None:
        self._reader = reader
        self._writer = writer
        self._host = host
        self._options = options
        self._ssl_context = ssl_context
        self._write_closed = False
        self._upgraded = False
        self._closed = False

    @property
    def secure_transport(self) -> SecureTransport:
        return self._options.secure_transport

    @property
    def allow_half_open(self) -> bool:
        return self._options.allow_half_open

    @property
    def closed(self) -> bool:
        return self._closed

    async def __aenter__(self) -> Socket:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    def _ensure_usable(self) -> None:
        if self._upgraded:
            raise SocketError("Socket was consumed by start_tls().")

    async def start_tls(self) -> Socket:
        if self._options.secure_transport is not SecureTransport.STARTTLS:
            raise SocketError(
                "start_tls() requires the socket to be opened with secure_transport=starttls."
            )
        self._ensure_usable()
        if self._closed:
            raise SocketError("Socket is closed.")

        context = self._ssl_context or _default_ssl_context()
        try:
            await self._writer.start_tls(context, server_hostname=self._host)
        except OSError as exc:
            raise SocketError(_describe(exc)) from exc

        # The stream pair now carries TLS; this plaintext handle must not touch it again.
        self._upgraded = True
        logger.debug("Upgraded connection to %s to TLS", self._host)
        return Socket(
            self._reader,
            self._writer,
            host=self._host,
            options=replace(self._options, secure_transport=SecureTransport.ON),
            ssl_context=context,
        )

    async def write(self, data: bytes) -> None:
        self._ensure_usable()
        if self._write_closed:
            raise SocketError(WRITABLE_CLOSED_MESSAGE)
        try:
            self._writer.write(data)
            await self._writer.drain()
        except OSError as exc:
            raise SocketError(CONNECTION_LOST_MESSAGE) from exc

    async def read_to_end(self) -> bytes:
        self._ensure_usable()
        if self._closed:
            raise SocketError("Socket is closed.")
        try:
            data = await self._reader.read()
        except OSError as exc:
            raise SocketError(_describe(exc)) from exc

        logger.debug("EOF from %s after %d bytes", self._host, len(data))
        if not self._options.allow_half_open:
            self._close_writable()
        return data

    def _close_writable(self) -> None:
        self._write_closed = True
        self._writer.close()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._upgraded:
            # Transport belongs to the upgraded socket.
            return
        self._close_writable()

    async def aclose(self) -> None:
        """Close and wait for the transport (and any TLS shutdown) to finish."""
        self.close()
        if self._upgraded:
            return
        try:
            await self._writer.wait_closed()
        except OSError as exc:
            # Teardown errors never change the result of a finished script.
            logger.debug("Error while closing connection to %s: %s", self._host, exc)


async def connect(
    host: str,
    port: int,
    options: SocketOptions | None = None,
    *,
    ssl_context: ssl.SSLContext | None = None,
) -> Socket:
    options = options or SocketOptions()
    tls = None
    if options.secure_transport is SecureTransport.ON:
        tls = ssl_context or _default_ssl_context()

    try:
        reader, writer = await asyncio.open_connection(
            host,
            port,
            ssl=tls,
            server_hostname=host if tls is not None else None,
        )
    except (OSError, UnicodeError) as exc:
        # UnicodeError: host name rejected by the IDNA codec.
        raise SocketConnectError(_describe(exc)) from exc

    logger.debug(
        "Connected to %s:%s (secure_transport=%s, allow_half_open=%s)",
        host,
        port,
        options.secure_transport.value,
        options.allow_half_open,
    )
    return Socket(reader, writer, host=host, options=options, ssl_context=ssl_context)
