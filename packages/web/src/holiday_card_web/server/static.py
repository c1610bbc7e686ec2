from __future__ import annotations

from functools import partial
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from typing import Any

from holiday_card_web.core import ServerStartFailure, dir_is_empty, get_logger

_log = get_logger("dev_server")


class WasmRequestHandler(SimpleHTTPRequestHandler):
    """
    Static file handler with the content types browsers insist on for
    `WebAssembly.instantiateStreaming` and ES module imports.
    """

    extensions_map = {
        **SimpleHTTPRequestHandler.extensions_map,
        ".wasm": "application/wasm",
        ".js": "text/javascript",
        ".mjs": "text/javascript",
    }

    def end_headers(self) -> None:
        # Every run regenerates the bundle; never let the browser keep an old one.
        self.send_header("Cache-Control", "no-store")
        super().end_headers()

    def log_message(self, format: str, *args: Any) -> None:
        _log.info("request", client=self.address_string(), line=format % args)


class DevServer:
    """
    Blocking static file server for manual browser testing.

        srv = DevServer(root, 8888).bind()
        srv.serve_forever()   # returns on Ctrl-C
    """

    def __init__(self, root: Path, port: int, host: str = "127.0.0.1") -> None:
        self.root = Path(root)
        self.port = int(port)
        self.host = host
        self._httpd: ThreadingHTTPServer | None = None

    @property
    def address(self) -> tuple[str, int]:
        if self._httpd is None:
            return (self.host, self.port)
        host, port = self._httpd.server_address[:2]
        return (str(host), int(port))

    @property
    def url(self) -> str:
        host, port = self.address
        return f"http://{host or 'localhost'}:{port}/"

    def bind(self) -> "DevServer":
        if not self.root.is_dir():
            raise ServerStartFailure(f"Nothing to serve, missing directory: {self.root}")
        if dir_is_empty(self.root):
            raise ServerStartFailure(f"Nothing to serve, empty directory: {self.root}")

        handler = partial(WasmRequestHandler, directory=str(self.root))
        try:
            self._httpd = ThreadingHTTPServer((self.host, self.port), handler)
        except OverflowError as e:
            raise ServerStartFailure(f"Cannot listen on {self.host}:{self.port}: {e}") from e
        except OSError as e:
            raise ServerStartFailure(
                f"Cannot listen on {self.host}:{self.port}: {e.strerror or e}"
            ) from e
        return self

    def serve_forever(self) -> None:
        if self._httpd is None:
            raise RuntimeError("DevServer.bind() must be called first")
        try:
            self._httpd.serve_forever()
        except KeyboardInterrupt:
            _log.info("Dev server interrupted", url=self.url)
        finally:
            self._httpd.server_close()

    def shutdown(self) -> None:
        """Stop a serve_forever() running in another thread."""
        if self._httpd is not None:
            self._httpd.shutdown()

    def __enter__(self) -> "DevServer":
        return self.bind() if self._httpd is None else self

    def __exit__(self, *exc: object) -> None:
        if self._httpd is not None:
            self._httpd.server_close()
