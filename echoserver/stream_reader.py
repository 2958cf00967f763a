"""Module provides class DeadlineReader."""
# std imports
import asyncio
import logging

__all__ = ("DeadlineReader", "LineTooLong")

_DEFAULT_LIMIT = 2 ** 16  # 64 KiB

logger = logging.getLogger("echoserver.stream_reader")


class LineTooLong(ValueError):
    """A line exceeded the buffer limit of the underlying stream."""


class DeadlineReader:
    """
    Line reader over :class:`asyncio.StreamReader` with a read deadline.

    Each call to :meth:`readline` waits at most ``deadline`` seconds, so a
    caller polling in a loop never blocks indefinitely and may re-check
    session state between attempts.
    """

    def __init__(self, reader, deadline=1.0, encoding="utf8",
                 encoding_errors="surrogateescape"):
        self._reader = reader
        self.deadline = deadline
        self.encoding = encoding
        self.encoding_errors = encoding_errors
        # remainder of an over-limit line is being skipped.
        self._discarding = False

    def __repr__(self):
        info = [type(self).__name__, "deadline={0}".format(self.deadline)]
        if self._discarding:
            info.append("discarding")
        if self._reader.at_eof():
            info.append("eof")
        return "<{}>".format(" ".join(info))

    def at_eof(self):
        """Return True if the underlying stream is at EOF."""
        return self._reader.at_eof()

    async def readline(self):
        """
        Read one newline-terminated line.

        :returns: the decoded line, including its trailing newline; ``None``
            when no complete line arrived within the deadline (data received
            so far remains buffered); or an empty string at end of input.
            A partial line preceding end of input is discarded.
        :raises LineTooLong: when the line exceeds the buffer limit of the
            stream.  The rest of that line is skipped by subsequent calls.
        :raises OSError: on any other I/O fault.
        """
        while True:
            try:
                line = await asyncio.wait_for(
                    self._reader.readuntil(b"\n"), self.deadline)
            except asyncio.TimeoutError:
                return None
            except asyncio.IncompleteReadError as err:
                if err.partial:
                    logger.debug("discarding %d bytes of partial line at EOF",
                                 len(err.partial))
                return ""
            except asyncio.LimitOverrunError as err:
                # consumed bytes are already buffered, this does not wait.
                await self._reader.readexactly(err.consumed)
                if self._discarding:
                    continue
                self._discarding = True
                raise LineTooLong(err.args[0]) from err

            if self._discarding:
                self._discarding = False
                continue
            return line.decode(self.encoding, self.encoding_errors)
