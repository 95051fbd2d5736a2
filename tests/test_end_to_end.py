import asyncio
import socket
import ssl
import unittest

import trustme

from sockcheck.checks.socket_probes import Target, build_probes
from sockcheck.runner import run


def _closed_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


class UnreachablePeerTests(unittest.IsolatedAsyncioTestCase):
    async def test_every_probe_fails_to_connect(self) -> None:
        port = _closed_port()
        target = Target(host="127.0.0.1", plain_port=port, tls_port=port)

        report = await run(build_probes(target), timeout_ms=2000)

        self.assertEqual(report.status_code, 500)
        self.assertEqual(len(report.lines), 5)
        names = ["NO_SSL", "SSL", "StartTls", "ALLOW_HALF_OPEN", "DISALLOW_HALF_OPEN"]
        for name, line in zip(names, report.lines):
            with self.subTest(probe=name):
                self.assertTrue(line.startswith(f"[FAILED] {name}: connect failed: "), line)


class PlaintextPeerTests(unittest.IsolatedAsyncioTestCase):
    """A local HTTP/1.0 peer that answers and then closes the connection."""

    async def asyncSetUp(self) -> None:
        self.requests: list[bytes] = []

        async def handle(reader, writer):
            try:
                self.requests.append(await reader.readuntil(b"\r\n\r\n"))
                writer.write(b"HTTP/1.0 200 OK\r\nContent-Length: 5\r\n\r\nhello")
                await writer.drain()
            except (asyncio.IncompleteReadError, ConnectionError):
                pass  # TLS client hello or early hang-up
            finally:
                writer.close()

        self.server = await asyncio.start_server(handle, "127.0.0.1", 0)
        port = self.server.sockets[0].getsockname()[1]
        self.target = Target(host="127.0.0.1", plain_port=port, tls_port=port)

    async def asyncTearDown(self) -> None:
        self.server.close()
        await self.server.wait_closed()

    async def test_plaintext_and_half_open_probes_pass(self) -> None:
        wanted = {"NO_SSL", "ALLOW_HALF_OPEN", "DISALLOW_HALF_OPEN"}
        probes = [probe for probe in build_probes(self.target) if probe.name in wanted]

        report = await run(probes, timeout_ms=2000)

        self.assertEqual(
            report.lines,
            [
                "[SUCCESS] NO_SSL",
                "[SUCCESS] ALLOW_HALF_OPEN",
                "[SUCCESS] DISALLOW_HALF_OPEN",
            ],
        )
        self.assertEqual(report.status_code, 200)
        self.assertEqual(self.requests[0], b"GET / HTTP/1.0\r\nHost: 127.0.0.1\r\n\r\n")

    async def test_tls_probe_against_plaintext_peer_fails(self) -> None:
        probes = [probe for probe in build_probes(self.target) if probe.name == "SSL"]

        report = await run(probes, timeout_ms=2000)

        self.assertEqual(report.status_code, 500)
        self.assertTrue(report.lines[0].startswith("[FAILED] SSL: "), report.lines[0])


class InvalidHostTests(unittest.IsolatedAsyncioTestCase):
    async def test_host_rejected_by_idna_is_tagged_as_connect_failure(self) -> None:
        report = await run(build_probes(Target(host="bad..host")), timeout_ms=2000)

        self.assertEqual(report.status_code, 500)
        self.assertEqual(len(report.lines), 5)
        for line in report.lines:
            with self.subTest(line=line):
                self.assertIn(": connect failed: UnicodeError: ", line)


async def _answer(reader, writer):
    try:
        await reader.readuntil(b"\r\n\r\n")
        writer.write(b"HTTP/1.0 200 OK\r\nContent-Length: 5\r\n\r\nhello")
        await writer.drain()
    except (asyncio.IncompleteReadError, ConnectionError):
        pass
    finally:
        writer.close()


class ReachablePeerTests(unittest.IsolatedAsyncioTestCase):
    """Plain HTTP on one port, TLS HTTP on the other, both closing after the response."""

    async def asyncSetUp(self) -> None:
        ca = trustme.CA()
        cert = ca.issue_cert("127.0.0.1")
        server_ctx = ssl.create_default_context(ssl.Purpose.CLIENT_AUTH)
        cert.configure_cert(server_ctx)
        client_ctx = ssl.create_default_context()
        ca.configure_trust(client_ctx)

        self.plain_server = await asyncio.start_server(_answer, "127.0.0.1", 0)
        self.tls_server = await asyncio.start_server(_answer, "127.0.0.1", 0, ssl=server_ctx)
        self.target = Target(
            host="127.0.0.1",
            plain_port=self.plain_server.sockets[0].getsockname()[1],
            tls_port=self.tls_server.sockets[0].getsockname()[1],
            ssl_context=client_ctx,
        )

    async def asyncTearDown(self) -> None:
        for server in (self.plain_server, self.tls_server):
            server.close()
            await server.wait_closed()

    async def test_every_probe_passes(self) -> None:
        report = await run(build_probes(self.target), timeout_ms=5000)

        self.assertEqual(
            report.lines,
            [
                "[SUCCESS] NO_SSL",
                "[SUCCESS] SSL",
                "[SUCCESS] StartTls",
                "[SUCCESS] ALLOW_HALF_OPEN",
                "[SUCCESS] DISALLOW_HALF_OPEN",
            ],
        )
        self.assertFalse(report.any_failed)
        self.assertEqual(report.status_code, 200)


if __name__ == "__main__":
    unittest.main()
