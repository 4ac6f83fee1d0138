import base64
import http.server
import ssl
import threading
from pathlib import Path

import pytest


TESTDATA = Path(__file__).parent / "testdata"
CA = str(TESTDATA / "ca.pem")
CRT = str(TESTDATA / "crt.pem")
KEY = str(TESTDATA / "key.pem")


class _Handler(http.server.BaseHTTPRequestHandler):
    def do_GET(self):
        self.server.seen.append({"path": self.path, "headers": dict(self.headers.items())})
        status, body, headers = self.server.respond(self)
        if isinstance(body, str):
            body = body.encode()
        self.send_response(status)
        for k, v in headers.items():
            self.send_header(k, v)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format, *args):
        pass


def basic_auth(req):
    header = req.headers.get("Authorization", "")
    if not header.startswith("Basic "):
        return None
    user, _, password = base64.b64decode(header[len("Basic "):]).decode().partition(":")
    return user, password


@pytest.fixture
def http_server():
    """Factory starting a throwaway server; ``respond(req)`` returns (status, body, headers)."""
    servers = []

    def start(respond, tls: bool = False, host: str = "127.0.0.1"):
        srv = http.server.ThreadingHTTPServer(("127.0.0.1", 0), _Handler)
        srv.respond = respond
        srv.seen = []
        scheme = "http"
        if tls:
            ctx = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
            ctx.load_cert_chain(str(TESTDATA / "server.pem"), str(TESTDATA / "server-key.pem"))
            srv.socket = ctx.wrap_socket(srv.socket, server_side=True)
            scheme = "https"
        srv.url = f"{scheme}://{host}:{srv.server_address[1]}"
        threading.Thread(target=srv.serve_forever, daemon=True).start()
        servers.append(srv)
        return srv

    yield start
    for srv in servers:
        srv.shutdown()
        srv.server_close()
