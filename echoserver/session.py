"""
Module provides class Session, the handler of one client connection.

A session reads newline-terminated messages through a
:class:`~.DeadlineReader`, answers each with the result of
:func:`~.dispatch`, and is closed by a :class:`~.TimeoutWatchdog` when the
client stays idle for too long.
"""
# std imports
import asyncio
import datetime
import logging
import time

# local
from . import audit
from .commands import dispatch, is_too_long, MSG_TOO_LONG
from .stream_reader import DeadlineReader, LineTooLong
from .watchdog import TimeoutWatchdog
from .accessories import format_peer

__all__ = ("Session", "TIMEOUT_NOTICE")

#: written to the client before closing an idle connection.
TIMEOUT_NOTICE = "Connection timed out due to inactivity"

#: seconds allowed to flush output on close before the connection is aborted.
CLOSE_MAXWAIT = 5.0

logger = logging.getLogger("echoserver.session")


class Session:
    """Line protocol session of one connected client."""

    _closed = False

    def __init__(self, reader, writer, config):
        """
        Class initializer.

        :param asyncio.StreamReader reader: client input stream.
        :param asyncio.StreamWriter writer: client output stream, owned by
            this session until :meth:`close`.
        :param config: server configuration, see :data:`~.server.CONFIG`.
        """
        self.config = config
        self.writer = writer
        self.reader = DeadlineReader(
            reader,
            deadline=config.read_deadline,
            encoding=config.encoding,
            encoding_errors=config.encoding_errors,
        )
        self.peer = format_peer(writer.get_extra_info("peername"))
        self.watchdog = TimeoutWatchdog(config.timeout, self.on_timeout)
        self.audit = None
        self.terminate = False
        self._when_connected = time.monotonic()

    def __repr__(self):
        return "<Session {0}>".format(self.peer)

    @property
    def duration(self):
        """Time elapsed since client connected, in seconds as float."""
        return time.monotonic() - self._when_connected

    @property
    def idle(self):
        """Time elapsed since the last message, in seconds as float."""
        return self.watchdog.idle

    async def run(self):
        """Serve the client until disconnect, termination or timeout."""
        logger.info("Client connected: %s", self.peer)
        try:
            self.audit = audit.open_audit_log(
                self.config.logdir, self.peer, encoding=self.config.encoding)
        except OSError as err:
            logger.error("Error creating audit log for %s: %s", self.peer, err)
            await self.close()
            return

        self.watchdog.start()
        try:
            await self._read_loop()
        except OSError as err:
            logger.warning("Error on connection %s: %s", self.peer, err)
        finally:
            await self.close()

    async def _read_loop(self):
        while not self.terminate:
            try:
                line = await self.reader.readline()
            except LineTooLong:
                self.watchdog.activity()
                await self.send(MSG_TOO_LONG)
                continue

            if line is None:
                # read deadline passed without a message.
                if self.watchdog.expired:
                    return
                continue
            if not line:
                logger.debug("EOF from %s", self.peer)
                return

            self.watchdog.activity()
            message = line.strip()
            if is_too_long(message, self.config.encoding, self.config.encoding_errors):
                logger.info("Message from %s: too long, %d characters",
                            self.peer, len(message))
            else:
                logger.info("Message from %s: %r", self.peer, message)
                self.audit.append(datetime.datetime.now().astimezone(), message)

            result = dispatch(
                message, self.config.encoding, self.config.encoding_errors)
            await self.send(result.response)
            self.terminate = result.terminate

    async def send(self, text):
        """Write ``text`` terminated by newline and flush."""
        self.writer.write(self._encode(text + "\n"))
        await self.writer.drain()

    def on_timeout(self):
        """
        Callback of the watchdog on session timeout.

        Writes :data:`TIMEOUT_NOTICE` and closes the connection.  The read
        loop then finds end of input.
        """
        logger.info("Client %s timed out after %1.2fs idle", self.peer, self.idle)
        if not self.writer.is_closing():
            self.writer.write(self._encode(TIMEOUT_NOTICE + "\n"))
        self.writer.close()

    async def close(self):
        """Release the connection, the watchdog and the audit log, once."""
        if self._closed:
            return
        self._closed = True
        self.watchdog.close()
        self.writer.close()
        try:
            await asyncio.wait_for(
                asyncio.shield(self.writer.wait_closed()), CLOSE_MAXWAIT)
        except asyncio.TimeoutError:
            logger.debug("Aborting %s, output not flushed", self.peer)
            self.writer.transport.abort()
        except OSError as err:
            logger.debug("Error closing %s: %s", self.peer, err)
        await self.watchdog.wait_closed()
        if self.audit is not None:
            self.audit.close()
        logger.info("Client disconnected: %s (%1.2fs)", self.peer, self.duration)

    def _encode(self, text):
        return text.encode(self.config.encoding, self.config.encoding_errors)
