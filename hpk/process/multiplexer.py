"""
Output multiplexer for launched processes.

A process's combined stdout/stderr pipe is copied into an OutputMultiplexer,
which forwards every chunk to an in-memory buffer and, optionally, to a
caller-supplied sink such as a live log stream.
"""

import errno
import io
import os
from typing import IO, Any, List, Optional


# Same chunk size as a typical stream copy loop
DEFAULT_CHUNK_SIZE = 32 * 1024


class OutputMultiplexer:
    """
    Fan-out writer with a mandatory in-memory buffer.

    Each write is delivered to every target in registration order within the
    same call. The first target error propagates to the writer, and targets
    after the failing one do not receive that chunk.
    """

    def __init__(self, *targets: Any):
        """
        Initialize multiplexer.

        Args:
            targets: Extra write targets, registered after the buffer
        """
        self._buffer = io.BytesIO()
        self._targets: List[Any] = [self._buffer, *targets]

    @classmethod
    def with_sink(cls, sink: Optional[IO[bytes]] = None) -> "OutputMultiplexer":
        if sink is None:
            return cls()
        return cls(sink)

    def write(self, data: bytes) -> int:
        for target in self._targets:
            _write_all(target, data)
        return len(data)

    def flush(self) -> None:
        for target in self._targets:
            flush = getattr(target, "flush", None)
            if flush is not None:
                flush()

    def getvalue(self) -> bytes:
        """Return everything captured so far."""
        return self._buffer.getvalue()


def _write_all(target: Any, data: bytes) -> None:
    """
    Write the whole chunk to one target.

    Raw streams may accept fewer bytes than offered. The remainder is retried,
    and a target that stops accepting data raises instead of dropping it.
    """
    remaining = data
    while remaining:
        written = target.write(remaining)
        if written is None:
            # File-like objects without a byte count take the whole chunk
            return
        if written <= 0:
            raise OSError(errno.EIO, f"short write: {len(remaining)} of {len(data)} bytes not accepted")
        remaining = remaining[written:]


def pump(stream: IO[bytes], multiplexer: OutputMultiplexer, chunk_size: int = DEFAULT_CHUNK_SIZE) -> int:
    """
    Copy a pipe into a multiplexer until EOF.

    Reads with os.read so each chunk is forwarded as soon as the process
    writes it instead of waiting for a full buffer.

    Args:
        stream: Read end of the process output pipe
        multiplexer: Destination
        chunk_size: Maximum bytes per read

    Returns:
        Number of bytes copied
    """
    fd = stream.fileno()
    copied = 0
    while True:
        chunk = os.read(fd, chunk_size)
        if not chunk:
            return copied
        multiplexer.write(chunk)
        multiplexer.flush()
        copied += len(chunk)
