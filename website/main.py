"""ASGI entrypoint and server runner.

``uvicorn website.main:app`` serves the module-level app; ``python -m
website.main`` (or the ``website`` console script) runs uvicorn with the
configured host, port, keep-alive timeout, optional TLS and a bounded
graceful shutdown on SIGINT/SIGTERM.
"""

from __future__ import annotations

import logging

import uvicorn

from website.core.app_factory import create_app
from website.core.config import Settings, settings

logger = logging.getLogger(__name__)

app = create_app()


def build_server_config(cfg: Settings) -> uvicorn.Config:
    """Translate settings into a uvicorn configuration."""
    options: dict = {
        "host": cfg.server.host,
        "port": cfg.server.port,
        "timeout_keep_alive": int(cfg.server.idle_timeout),
        "timeout_graceful_shutdown": int(cfg.server.shutdown_timeout),
        "log_config": None,
        "access_log": False,
        "proxy_headers": True,
    }
    if cfg.tls.enabled:
        options["ssl_certfile"] = cfg.tls.cert_file
        options["ssl_keyfile"] = cfg.tls.key_file

    return uvicorn.Config(app, **options)


def run() -> None:
    """Start the HTTP(S) server and block until shutdown."""
    config = build_server_config(settings)
    scheme = "https" if settings.tls.enabled else "http"
    logger.info(
        "server.starting",
        extra={
            "address": f"{scheme}://{settings.server.host}:{settings.server.port}",
            "environment": settings.app_env,
            "tls": settings.tls.enabled,
        },
    )
    uvicorn.Server(config).run()
    logger.info("server.exited")


if __name__ == "__main__":
    run()
