"""Application wiring: lazily built components, the WSGI app and the server entry point."""

from __future__ import annotations

import argparse
import logging
import signal
import socketserver
import threading
from typing import Any, Callable
from wsgiref.simple_server import WSGIRequestHandler, WSGIServer, make_server

from flask import Flask, Response, jsonify, request

from .api import create_blueprint
from .openapi import DEFAULT_BASE_PATH, swagger_document
from .repository import InMemoryTaskRepository
from .service import TaskService

log = logging.getLogger(__name__)

DEFAULT_HOST = ""
DEFAULT_PORT = 8080

_CORS_ALLOW_METHODS = "GET,POST,PUT,PATCH,DELETE,HEAD,OPTIONS"
_CORS_ALLOW_HEADERS = "Origin,Content-Length,Content-Type"
_CORS_MAX_AGE = str(12 * 60 * 60)


class _ThreadingWSGIServer(socketserver.ThreadingMixIn, WSGIServer):
    daemon_threads = True


class _LoggingRequestHandler(WSGIRequestHandler):
    def log_message(self, format: str, *args: Any) -> None:
        log.info("%s - %s", self.address_string(), format % args)


def _install_cors(app: Flask) -> None:
    """Allow requests from any origin, answering preflight requests directly."""

    @app.before_request
    def _preflight():
        if (
            request.method == "OPTIONS"
            and request.headers.get("Origin")
            and request.headers.get("Access-Control-Request-Method")
        ):
            response = Response(status=204)
            response.headers["Access-Control-Allow-Methods"] = _CORS_ALLOW_METHODS
            response.headers["Access-Control-Allow-Headers"] = _CORS_ALLOW_HEADERS
            response.headers["Access-Control-Max-Age"] = _CORS_MAX_AGE
            return response
        return None

    @app.after_request
    def _allow_origin(response: Response) -> Response:
        if request.headers.get("Origin"):
            response.headers["Access-Control-Allow-Origin"] = "*"
        return response


class Container:
    """Builds each component on first use and hands out the same instance afterwards."""

    def __init__(self, **service_options: Any) -> None:
        self._service_options = service_options
        self._repository: InMemoryTaskRepository | None = None
        self._service: TaskService | None = None
        self._app: Flask | None = None
        self._server: WSGIServer | None = None

    def task_repository(self) -> InMemoryTaskRepository:
        if self._repository is None:
            self._repository = InMemoryTaskRepository()
        return self._repository

    def task_service(self) -> TaskService:
        if self._service is None:
            self._service = TaskService(self.task_repository(), **self._service_options)
        return self._service

    def flask_app(self) -> Flask:
        if self._app is None:
            app = Flask(__name__)
            _install_cors(app)
            app.register_blueprint(
                create_blueprint(self.task_service()), url_prefix=DEFAULT_BASE_PATH
            )

            def swagger_doc():
                return jsonify(swagger_document())

            app.add_url_rule(
                f"{DEFAULT_BASE_PATH}/swagger/doc.json",
                "swagger_doc",
                swagger_doc,
                methods=["GET"],
            )
            self._app = app
        return self._app

    def server(self, host: str = DEFAULT_HOST, port: int = DEFAULT_PORT) -> WSGIServer:
        """The HTTP server bound to host and port; bound once, on the first call."""
        if self._server is None:
            self._server = make_server(
                host,
                port,
                self.flask_app(),
                server_class=_ThreadingWSGIServer,
                handler_class=_LoggingRequestHandler,
            )
        return self._server


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Serve the task management API.")
    parser.add_argument("--host", default=DEFAULT_HOST, help="address to bind")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT, help="port to listen on")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Run the server until SIGINT or SIGTERM, then stop it cleanly."""
    args = _parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")

    container = Container()
    server = container.server(args.host, args.port)

    stop = threading.Event()

    def _on_signal(signum: int, frame: Any) -> None:
        stop.set()

    handlers: dict[int, Callable | int | None] = {
        sig: signal.signal(sig, _on_signal) for sig in (signal.SIGINT, signal.SIGTERM)
    }
    worker = threading.Thread(target=server.serve_forever, name="http-server", daemon=True)
    worker.start()
    host, port = server.server_address[:2]
    log.info("Server listening on %s:%s", host, port)

    try:
        while not stop.wait(0.5):
            pass
        log.info("Shutdown signal received...")
    finally:
        for sig, previous in handlers.items():
            signal.signal(sig, previous)

    server.shutdown()
    server.server_close()
    worker.join(timeout=30)
    log.info("Server stopped cleanly")
    return 0