"""
pytest configuration and fixtures.
"""

import socket
import struct
import threading
from dataclasses import dataclass, field
from typing import Callable, Generator, List, Optional, Sequence, Union
import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from shoutsource import HandlerConfig


HTTP_OK = b"HTTP/1.0 200 OK\r\nServer: Icecast 2.4.4\r\n\r\n"
HTTP_FORBIDDEN = (
    b"HTTP/1.0 403 Forbidden\r\n"
    b"Content-Type: text/html\r\n"
    b"\r\n"
    b"<html><body>Mountpoint in use</body></html>"
)


def get_free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


@pytest.fixture
def free_port() -> int:
    """Get a free port for testing."""
    return get_free_port()


@pytest.fixture
def config() -> HandlerConfig:
    """Handler configuration with short timeouts."""
    return HandlerConfig(connection_timeout=5.0, timeout=5.0)


@dataclass
class StubConnection:
    """What the stub server saw on one accepted connection."""

    data: bytearray = field(default_factory=bytearray)
    finished: threading.Event = field(default_factory=threading.Event)

    @property
    def text(self) -> str:
        return self.data.decode("latin-1")


class StubServer:
    """
    Scripted streaming server that runs in background threads.

    Each accepted connection reads until `delimiter`, answers with the next
    canned response (the last one is reused), then:

        hold=True   keeps reading until the client closes
        reset=True  waits for one more chunk, then resets the connection
        otherwise   closes right away

    A response of None closes without answering.
    """

    def __init__(
        self,
        port: int,
        responses: Union[Optional[bytes], Sequence[Optional[bytes]]],
        delimiter: bytes = b"\r\n\r\n",
        hold: bool = False,
        reset: bool = False,
    ):
        if responses is None or isinstance(responses, bytes):
            responses = [responses]
        self.port = port
        self.responses = list(responses)
        self.delimiter = delimiter
        self.hold = hold
        self.reset = reset

        self.connections: List[StubConnection] = []
        self._lock = threading.Lock()
        self._accepted = threading.Condition(self._lock)
        self._running = False
        self._socket: Optional[socket.socket] = None
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        """Start accepting in a background thread."""
        self._socket = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._socket.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self._socket.bind(("127.0.0.1", self.port))
        self._socket.listen(8)
        self._socket.settimeout(0.1)
        self._running = True

        self._thread = threading.Thread(target=self._accept_loop, daemon=True)
        self._thread.start()

    def stop(self) -> None:
        """Stop accepting and release the port."""
        self._running = False
        if self._thread is not None:
            self._thread.join(timeout=5.0)
        if self._socket is not None:
            self._socket.close()

    def wait_connection(self, index: int = 0, timeout: float = 5.0) -> StubConnection:
        """Wait until connection `index` was accepted and finished."""
        with self._accepted:
            if not self._accepted.wait_for(lambda: len(self.connections) > index, timeout):
                raise AssertionError(f"connection {index} never arrived")
            record = self.connections[index]
        if not record.finished.wait(timeout):
            raise AssertionError(f"connection {index} never finished")
        return record

    def _accept_loop(self) -> None:
        while self._running:
            try:
                client, _ = self._socket.accept()
            except socket.timeout:
                continue
            except OSError:
                return

            with self._accepted:
                index = len(self.connections)
                record = StubConnection()
                self.connections.append(record)
                self._accepted.notify_all()

            response = self.responses[min(index, len(self.responses) - 1)]
            threading.Thread(
                target=self._serve, args=(client, record, response), daemon=True
            ).start()

    def _serve(self, client: socket.socket, record: StubConnection, response: Optional[bytes]) -> None:
        client.settimeout(5.0)
        try:
            while self.delimiter not in record.data:
                chunk = client.recv(4096)
                if not chunk:
                    break
                record.data += chunk

            if response is None:
                return
            client.sendall(response)

            if self.reset:
                record.data += client.recv(4096)
                client.setsockopt(socket.SOL_SOCKET, socket.SO_LINGER, struct.pack("ii", 1, 0))
                return

            if self.hold:
                while True:
                    chunk = client.recv(65536)
                    if not chunk:
                        break
                    record.data += chunk
        except OSError:
            pass
        finally:
            client.close()
            record.finished.set()


@pytest.fixture
def stub_server() -> Generator[Callable[..., StubServer], None, None]:
    """Factory for started StubServers, all stopped at teardown."""
    servers: List[StubServer] = []

    def start(*args, **kwargs) -> StubServer:
        server = StubServer(get_free_port(), *args, **kwargs)
        server.start()
        servers.append(server)
        return server

    yield start

    for server in servers:
        server.stop()
