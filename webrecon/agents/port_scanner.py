import socket

from ..events import Topic
from ..logging_utils import log_suppressed
from .base import Agent


class TCPPortScanner(Agent):
    ID = "agent:tcp_port_scanner"

    def register(self, session):
        session.dispatcher.subscribe(Topic.HOST_DISCOVERED, self.on_host)
        self.session = session

    def on_host(self, host: str) -> None:
        self.log.debug("[%s] Received new host: %s", self.ID, host)
        for port in self.session.ports:
            self.session.limiter.spawn(self._scan, port, host)

    def _scan(self, port: int, host: str) -> None:
        stats = self.session.stats
        try:
            self.scan_port(port, host)
        except OSError as exc:
            stats.increment("port_closed")
            log_suppressed(self.log, exc, f"[{self.ID}] Port {port} is closed on {host}")
            return
        stats.increment("port_open")
        self.log.info("%s: port %d open", host, port)
        self.session.publish(Topic.PORT_OPEN, port, host)

    def scan_port(self, port: int, host: str) -> None:
        """Connect and immediately close; raises OSError when the port is not open."""
        timeout = self.session.config.scan_timeout / 1000.0
        conn = socket.create_connection((host, port), timeout=timeout)
        conn.close()
