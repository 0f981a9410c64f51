"""Prometheus scrape endpoint.

Serves a ``CollectorRegistry`` in the text exposition format over a
``ThreadingHTTPServer`` running on a daemon thread. Socket reads and writes
time out after 8 seconds; requests whose headers exceed 1 MiB get HTTP 431.

The listening socket is bound synchronously in ``start()`` so bind failures
surface to the caller; only the serve loop runs in the background.
"""
from __future__ import annotations

import logging
import threading
from http.server import ThreadingHTTPServer

from prometheus_client import REGISTRY, CollectorRegistry, MetricsHandler

from consulprom.utils.exceptions import ScrapeServerError

logger = logging.getLogger(__name__)

READ_WRITE_TIMEOUT_SECONDS = 8.0
MAX_HEADER_BYTES = 1 << 20


def _handler_for(registry: CollectorRegistry) -> type[MetricsHandler]:
    base = MetricsHandler.factory(registry)

    class _ScrapeHandler(base):  # type: ignore[misc, valid-type]
        # StreamRequestHandler applies this to the connection socket.
        timeout = READ_WRITE_TIMEOUT_SECONDS
        _BENIGN_ERRORS = (BrokenPipeError, ConnectionResetError, TimeoutError)

        def handle(self):  # override w/ same signature
            try:
                super().handle()
            except self._BENIGN_ERRORS as e:  # pragma: no cover - timing dependent
                logger.debug("scrape_server: benign socket error: %s", e)

        def parse_request(self) -> bool:
            if not super().parse_request():
                return False
            header_bytes = sum(len(k) + len(v) + 4 for k, v in self.headers.items())
            if header_bytes > MAX_HEADER_BYTES:
                self.send_error(431, "Request Header Fields Too Large")
                return False
            return True

        def log_message(self, format, *args):  # silence default noisy logging
            logger.debug("scrape_server: " + format, *args)

    return _ScrapeHandler


class _ScrapeHTTPServer(ThreadingHTTPServer):
    daemon_threads = True
    # A second server must not silently share an already bound port.
    allow_reuse_port = False


class ScrapeServer:
    def __init__(self, port: int = 9108, host: str = "0.0.0.0",
                 registry: CollectorRegistry | None = None) -> None:
        self.port = port
        self.host = host
        self.registry = registry if registry is not None else REGISTRY
        self._httpd: ThreadingHTTPServer | None = None
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def address(self) -> tuple[str, int] | None:
        """Bound (host, port); reflects the real port when started with port 0."""
        if self._httpd is None:
            return None
        host, port = self._httpd.server_address[:2]
        return str(host), int(port)

    def start(self) -> None:
        with self._lock:
            if self._httpd is not None:
                logger.debug("scrape_server: already serving on %s:%s", self.host, self.port)
                return
            try:
                httpd = _ScrapeHTTPServer((self.host, self.port), _handler_for(self.registry))
            except OSError as e:
                raise ScrapeServerError(f"failed to bind scrape endpoint {self.host}:{self.port}: {e}") from e
            self._httpd = httpd
            self._thread = threading.Thread(
                target=httpd.serve_forever, kwargs={"poll_interval": 0.5},
                name="consulprom-scrape-http", daemon=True,
            )
            self._thread.start()
        host, port = self.address or (self.host, self.port)
        logger.info("Metrics server started on %s:%s", host, port)
        logger.info("Metrics available at http://%s:%s/metrics", host, port)

    def close(self, timeout: float = 2.0) -> None:
        """Stop serving; safe to call even if never started."""
        with self._lock:
            httpd, th = self._httpd, self._thread
            self._httpd = None
            self._thread = None
        if httpd is None:
            return
        try:
            httpd.shutdown()
            httpd.server_close()
        except OSError as e:
            raise ScrapeServerError(f"failed to stop scrape endpoint: {e}") from e
        finally:
            if th is not None:
                th.join(timeout=timeout)
        logger.info("Metrics server stopped")


__all__ = ["ScrapeServer", "READ_WRITE_TIMEOUT_SECONDS", "MAX_HEADER_BYTES"]
