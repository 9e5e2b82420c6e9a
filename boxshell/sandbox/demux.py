"""Decoder for the engine's multiplexed exec output stream.

An exec started without a TTY writes stdout and stderr into one stream of
frames. Each frame is an 8-byte header followed by its payload:

    byte 0      stream selector (1 = stdout, 2 = stderr)
    bytes 1-3   reserved
    bytes 4-7   payload length, big-endian unsigned 32-bit

Data that does not parse as a frame is kept as raw text rather than
dropped, so a stream that was never multiplexed still decodes to its bytes.
"""

import re
import struct


HEADER_SIZE = 8
STDOUT = 1
STDERR = 2

_HEADER = struct.Struct(">BxxxI")
_LEADING_CONTROL = re.compile(r"^[\x00-\x08\x0e-\x1f\x7f]*")


class StreamDemultiplexer:
    """Incremental frame decoder.

    Chunks are fed as they arrive. Complete frames are decoded immediately;
    a header or payload cut by a chunk boundary is held until the next chunk.
    ``finish()`` flushes whatever is still held as raw text.

    A zero payload length, or any data left over at ``finish()``, is
    appended verbatim. For input delivered as one chunk this gives the
    same text as decoding that chunk frame by frame in place.
    """

    def __init__(self) -> None:
        self._pending = bytearray()
        self._output = bytearray()
        self._finished = False

    def feed(self, chunk: bytes) -> None:
        """Consume one chunk of the stream.

        Args:
            chunk: Raw bytes as received from the engine.

        Raises:
            RuntimeError: If called after ``finish()``.
        """
        if self._finished:
            raise RuntimeError("Cannot feed a finished demultiplexer")
        if not chunk:
            return
        self._pending.extend(chunk)
        self._drain()

    def _drain(self) -> None:
        buf = self._pending
        offset = 0
        while len(buf) - offset >= HEADER_SIZE:
            selector, size = _HEADER.unpack_from(buf, offset)
            if size == 0:
                # Not a frame we can trust; keep the rest as text
                self._output.extend(buf[offset:])
                offset = len(buf)
                break
            end = offset + HEADER_SIZE + size
            if end > len(buf):
                break
            if selector in (STDOUT, STDERR):
                self._output.extend(buf[offset + HEADER_SIZE:end])
            offset = end
        del buf[:offset]

    def finish(self) -> str:
        """Flush held bytes and return the decoded text.

        Returns:
            Concatenated stdout/stderr payloads plus any raw remainder,
            decoded as UTF-8 (undecodable bytes replaced).
        """
        if not self._finished:
            self._output.extend(self._pending)
            self._pending.clear()
            self._finished = True
        return self._output.decode("utf-8", errors="replace")


def demultiplex(data: bytes) -> str:
    """Decode a complete multiplexed stream held in memory."""
    demux = StreamDemultiplexer()
    demux.feed(data)
    return demux.finish()


def clean_output(text: str) -> str:
    """Trim whitespace and then any leading control characters."""
    return _LEADING_CONTROL.sub("", text.strip())
