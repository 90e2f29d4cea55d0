"""TCP acceptor with a bounded pool of session workers."""

import logging
import socket
import threading
from concurrent.futures import ThreadPoolExecutor

from social_network.containers import AppContainer
from social_network.protocol.framing import SocketLineChannel
from social_network.server.session import SessionHandler

_logger = logging.getLogger(__name__)

SERVER_FULL = "Server is at maximum capacity. Please try again later."
_ACCEPT_POLL_SECONDS = 0.5


class SocialNetworkServer:
    """Accepts connections and runs one SessionHandler per connection.

    At most `max_connections` sessions run at once; extra connections are
    told the server is full and closed without entering the dispatch loop.
    """

    def __init__(
        self,
        container: AppContainer,
        host: str | None = None,
        port: int | None = None,
        max_connections: int | None = None,
    ) -> None:
        settings = container.settings
        self.container = container
        self.host = settings.server_host if host is None else host
        self.port = settings.server_port if port is None else port
        self.max_connections = max_connections or settings.max_connections
        self._slots = threading.BoundedSemaphore(self.max_connections)
        self._executor = ThreadPoolExecutor(
            max_workers=self.max_connections, thread_name_prefix="session"
        )
        self._stopped = threading.Event()
        self._listener: socket.socket | None = None
        self._thread: threading.Thread | None = None
        self._channels: set[SocketLineChannel] = set()
        self._channels_lock = threading.Lock()

    @property
    def address(self) -> tuple[str, int]:
        """The bound address; resolves port 0 to the real port."""
        if self._listener is None:
            raise RuntimeError("Server is not listening")
        host, port = self._listener.getsockname()[:2]
        return host, port

    def bind(self) -> None:
        listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        listener.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        listener.bind((self.host, self.port))
        listener.listen()
        listener.settimeout(_ACCEPT_POLL_SECONDS)
        self._listener = listener
        _logger.info(
            "Listening on %s:%d (max %d sessions)",
            *self.address,
            self.max_connections,
        )

    def serve_forever(self) -> None:
        if self._listener is None:
            self.bind()
        listener = self._listener
        while not self._stopped.is_set():
            try:
                conn, addr = listener.accept()
            except TimeoutError:
                continue
            except OSError:
                if self._stopped.is_set():
                    break
                raise
            conn.settimeout(None)
            self._dispatch(conn, addr)

    def start(self) -> None:
        """Bind and serve on a background thread."""
        self.bind()
        self._thread = threading.Thread(
            target=self.serve_forever, name="acceptor", daemon=True
        )
        self._thread.start()

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting, then close every live session so workers can exit."""
        self._stopped.set()
        if self._thread is not None:
            self._thread.join()
        if self._listener is not None:
            self._listener.close()
        with self._channels_lock:
            live = list(self._channels)
            self._channels.clear()
        for channel in live:
            channel.close()
        if live:
            _logger.info("Closed %d live sessions", len(live))
        self._executor.shutdown(wait=wait)
        _logger.info("Server stopped")

    def _dispatch(self, conn: socket.socket, addr: tuple[str, int]) -> None:
        if not self._slots.acquire(blocking=False):
            _logger.warning("Rejecting %s:%d: server full", addr[0], addr[1])
            channel = SocketLineChannel(conn)
            try:
                channel.write_line(SERVER_FULL)
            except OSError as exc:
                _logger.warning("Could not notify %s of capacity: %s", addr[0], exc)
            finally:
                channel.close()
            return
        _logger.info("Accepted connection from %s:%d", addr[0], addr[1])
        self._executor.submit(self._run_session, conn, addr)

    def _run_session(self, conn: socket.socket, addr: tuple[str, int]) -> None:
        channel = SocketLineChannel(conn)
        try:
            with self._channels_lock:
                if self._stopped.is_set():
                    channel.close()
                    return
                self._channels.add(channel)
            handler = SessionHandler(
                channel,
                self.container,
                peer_address=addr[0],
                peer_port=addr[1],
            )
            handler.run()
        finally:
            with self._channels_lock:
                self._channels.discard(channel)
            self._slots.release()
