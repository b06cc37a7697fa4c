# getlogs_proxy/server/app.py
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any

import anyio
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from getlogs_proxy.client.upstream import UpstreamClient
from getlogs_proxy.config.settings import ProxySettings
from getlogs_proxy.logs.block_tags import BlockTagResolver
from getlogs_proxy.logs.chunker import LogRangeChunker
from getlogs_proxy.server.dispatcher import RPCDispatcher
from getlogs_proxy.server.processor import RPCProcessor
from getlogs_proxy.transport.http import HTTPTransport


def _configure_proxy_logging(level: str | int = "INFO"):
    logger = logging.getLogger("getlogs_proxy")
    logger.setLevel(level)
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)


class ProxyServer:
    """
    Wires the upstream client, the eth_getLogs chunker and the JSON-RPC
    processor into a FastAPI app and serves it with uvicorn.
    """

    def __init__(self, settings: ProxySettings, upstream: Any | None = None):
        self._settings = settings
        self._logger = logging.getLogger("getlogs_proxy.server")
        _configure_proxy_logging(self._settings.log_level)

        self.upstream = upstream or UpstreamClient(
            settings.upstream_url,
            timeout=settings.upstream_timeout,
        )
        resolver = BlockTagResolver(self.upstream)
        self.chunker = LogRangeChunker(self.upstream, chunk_size=settings.chunk_size, resolver=resolver)
        self.dispatcher = RPCDispatcher(self.upstream, self.chunker)
        self.processor = RPCProcessor(self.dispatcher)
        self.transport = HTTPTransport(self.processor)
        self._app: FastAPI | None = None

    @property
    def settings(self) -> ProxySettings:
        return self._settings

    def create_app(self) -> FastAPI:
        if self._app is not None:
            return self._app

        @asynccontextmanager
        async def lifespan(app: FastAPI):
            self._logger.info(f"eth_getLogs chunking proxy listening on http://{self._settings.host}:{self._settings.port}")
            self._logger.info(f"Forwarding to upstream: {self._settings.upstream_url}")
            self._logger.info(f"Chunk size: {self._settings.chunk_size} blocks")
            try:
                yield
            finally:
                await self.upstream.aclose()

        app = FastAPI(title="getlogs-proxy", lifespan=lifespan)
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_methods=["POST", "OPTIONS"],
            allow_headers=["Content-Type"],
        )
        app.post(self._settings.mount_path)(self.transport.handle)

        self._app = app
        return app

    def run(self) -> None:
        """Serve until interrupted."""
        anyio.run(self._run_http_async, self._settings.host, self._settings.port)

    async def _run_http_async(self, host: str, port: int):
        app = self.create_app()
        log_level = self._settings.log_level
        config = uvicorn.Config(
            app,
            host=host,
            port=port,
            log_level=log_level.lower() if isinstance(log_level, str) else log_level,
        )
        server = uvicorn.Server(config)
        await server.serve()
