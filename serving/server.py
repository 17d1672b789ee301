"""
Dual-transport server: HTTP and gRPC listeners over one BertService.

Both listeners run as asyncio tasks in the same event loop and share the same
service instance, so a request yields the same record whichever transport
carries it.

Lifecycle:
    server = DualTransportServer(service, config)
    await server.start()    # bind both listeners (ServerStartupError on failure)
    await server.wait()     # run until either listener exits, then stop both
    await server.stop()     # graceful shutdown, idempotent

    or simply: await server.serve()

Listener failures (bind errors, unreadable certificates) are fatal: start()
stops whatever was already running and raises ServerStartupError.
"""

import asyncio
import logging
import socket
import ssl
from typing import Optional

import grpc
import uvicorn

from .api import create_app
from .bert_service import BertService
from .config import ServerConfig, split_address
from .errors import ServerStartupError
from .grpc_service import BertServicer, add_bert_servicer_to_server

logger = logging.getLogger(__name__)

_STARTUP_POLL_SECONDS = 0.01


def _grpc_target(address: str) -> str:
    host, port = split_address(address)
    if ":" in host:
        host = f"[{host}]"
    return f"{host}:{port}"


class DualTransportServer:
    """
    Run the HTTP and gRPC listeners concurrently until shutdown.

    Attributes:
        http_port: Port the HTTP listener is bound to (set by start())
        grpc_port: Port the gRPC listener is bound to (set by start())
            Both are useful when binding port 0.
    """

    def __init__(self, service: BertService, config: ServerConfig):
        self.service = service
        self.config = config
        self.app = create_app(service)

        self.http_port: Optional[int] = None
        self.grpc_port: Optional[int] = None

        self._http_server: Optional[uvicorn.Server] = None
        self._grpc_server: Optional[grpc.aio.Server] = None
        self._http_task: Optional[asyncio.Task] = None
        self._grpc_task: Optional[asyncio.Task] = None
        self._stopped = False

    async def start(self) -> None:
        """
        Bind and start both listeners.

        Raises:
            ServerStartupError: If either listener cannot bind or load TLS material
        """
        mode = "plaintext" if self.config.tls_disable else "TLS"
        logger.info(
            f"Starting listeners ({mode}): http={self.config.http_address} "
            f"grpc={self.config.grpc_address}"
        )
        try:
            await self._start_grpc()
            await self._start_http()
        except BaseException:
            await self.stop()
            raise

        logger.info(
            f"Serving HTTP on port {self.http_port} and gRPC on port {self.grpc_port}"
        )

    async def wait(self) -> None:
        """
        Supervise both listeners.

        Returns once either listener exits (shutdown signal or failure); the
        other one is then stopped too. A listener failure is re-raised.
        """
        tasks = [t for t in (self._http_task, self._grpc_task) if t is not None]
        if not tasks:
            raise RuntimeError("Server is not started")

        done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        for task in done:
            logger.info(f"Listener {task.get_name()} exited, shutting down")
        await self.stop()

    async def stop(self) -> None:
        """Signal both listeners to shut down and wait for them to finish."""
        if self._stopped:
            return
        self._stopped = True

        if self._http_server is not None:
            self._http_server.should_exit = True
        if self._grpc_server is not None:
            await self._grpc_server.stop(self.config.grpc_grace_seconds)

        tasks = [t for t in (self._http_task, self._grpc_task) if t is not None]
        results = await asyncio.gather(*tasks, return_exceptions=True)
        logger.info("Listeners stopped")

        for result in results:
            if isinstance(result, Exception):
                raise result

    async def serve(self) -> None:
        """Start both listeners and run until shutdown."""
        await self.start()
        try:
            await self.wait()
        finally:
            await self.stop()

    # ------------------------------------------------------------------
    # gRPC listener
    # ------------------------------------------------------------------

    async def _start_grpc(self) -> None:
        target = _grpc_target(self.config.grpc_address)
        server = grpc.aio.server()
        add_bert_servicer_to_server(BertServicer(self.service), server)

        try:
            if self.config.tls_disable:
                port = server.add_insecure_port(target)
            else:
                port = server.add_secure_port(target, self._grpc_credentials())
        except RuntimeError as e:
            raise ServerStartupError(f"Failed to bind gRPC listener on {target}: {e}") from e
        if port == 0:
            raise ServerStartupError(f"Failed to bind gRPC listener on {target}")

        await server.start()
        self._grpc_server = server
        self.grpc_port = port
        self._grpc_task = asyncio.create_task(server.wait_for_termination(), name="grpc")

    def _grpc_credentials(self) -> grpc.ServerCredentials:
        try:
            private_key = self.config.tls_key.read_bytes()
            certificate_chain = self.config.tls_cert.read_bytes()
        except OSError as e:
            raise ServerStartupError(f"Failed to load TLS key pair for gRPC: {e}") from e
        return grpc.ssl_server_credentials([(private_key, certificate_chain)])

    # ------------------------------------------------------------------
    # HTTP listener
    # ------------------------------------------------------------------

    async def _start_http(self) -> None:
        host, port = split_address(self.config.http_address)
        tls = {}
        if not self.config.tls_disable:
            tls = {
                "ssl_certfile": str(self.config.tls_cert),
                "ssl_keyfile": str(self.config.tls_key),
            }

        uvicorn_config = uvicorn.Config(
            self.app,
            host=host,
            port=port,
            log_level=self.config.log_level,
            **tls,
        )
        try:
            # Loads the SSL context now so certificate errors surface before serving
            uvicorn_config.load()
        except (OSError, ssl.SSLError) as e:
            raise ServerStartupError(f"Failed to load TLS key pair for HTTP: {e}") from e

        family = socket.AF_INET6 if ":" in host else socket.AF_INET
        try:
            sock = socket.create_server((host, port), family=family)
        except OSError as e:
            raise ServerStartupError(f"Failed to bind HTTP listener on {host}:{port}: {e}") from e

        server = uvicorn.Server(uvicorn_config)
        self._http_server = server
        self._http_task = asyncio.create_task(server.serve(sockets=[sock]), name="http")

        while not server.started:
            if self._http_task.done():
                self._http_task.result()
                raise ServerStartupError("HTTP listener exited during startup")
            await asyncio.sleep(_STARTUP_POLL_SECONDS)
        self.http_port = sock.getsockname()[1]


def start_default_server(service: BertService, config: ServerConfig) -> None:
    """
    Serve both transports until interrupted.

    Blocking convenience wrapper around DualTransportServer.serve().
    """
    asyncio.run(DualTransportServer(service, config).serve())
