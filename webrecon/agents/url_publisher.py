import socket
import ssl

from ..events import Topic
from ..utils.domain import host_and_port_to_url
from .base import Agent


class URLPublisher(Agent):
    """Turns an open port into a URL, deciding between http and https."""

    ID = "agent:url_publisher"

    def register(self, session):
        session.dispatcher.subscribe(Topic.PORT_OPEN, self.on_tcp_port)
        self.session = session

    def on_tcp_port(self, port: int, host: str) -> None:
        self.log.debug("[%s] Received new open port on %s: %d", self.ID, host, port)
        self.session.limiter.spawn(self._classify, port, host)

    def _classify(self, port: int, host: str) -> None:
        scheme = "https" if self.is_tls(port, host) else "http"
        self.session.publish(Topic.URL_CLASSIFIED, host_and_port_to_url(host, port, scheme))

    def is_tls(self, port: int, host: str) -> bool:
        if port == 80:
            return False
        if port == 443:
            return True
        timeout = self.session.config.http_timeout / 1000.0
        ctx = ssl.create_default_context()
        ctx.check_hostname = False
        ctx.verify_mode = ssl.CERT_NONE
        try:
            with socket.create_connection((host, port), timeout=timeout) as raw:
                with ctx.wrap_socket(raw, server_hostname=host):
                    return True
        except (OSError, ssl.SSLError) as exc:
            self.log.debug("[%s] TLS handshake with %s:%d failed: %s", self.ID, host, port, exc)
            return False
