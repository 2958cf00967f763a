"""
The ``main`` function here is wired to the command line tool by name
echoserver.  If this server's PID receives the SIGTERM signal, it
attempts to shutdown gracefully.

Each connection is served by a :class:`~.Session`, answering
newline-terminated messages and disconnecting clients after an idle period.
"""

# std imports
import collections
import argparse
import asyncio
import logging
import signal

# local
from . import accessories
from .session import Session
from .stream_reader import _DEFAULT_LIMIT

__all__ = ("CONFIG", "create_server", "run_server", "parse_server_args")

CONFIG = collections.namedtuple(
    "CONFIG",
    [
        "host",
        "port",
        "loglevel",
        "logfile",
        "logfmt",
        "logdir",
        "encoding",
        "encoding_errors",
        "timeout",
        "read_deadline",
    ],
)(
    host="",
    port=4000,
    loglevel="info",
    logfile=None,
    logfmt=accessories._DEFAULT_LOGFMT,
    logdir=".",
    encoding="utf8",
    encoding_errors="surrogateescape",
    timeout=30.0,
    read_deadline=1.0,
)
logger = logging.getLogger("echoserver.server")


async def create_server(host=None, port=None, config=CONFIG,
                        session_factory=Session, limit=_DEFAULT_LIMIT):
    """
    Create a TCP line protocol server.

    :param str host: bind address, or a sequence of addresses.  When
        unspecified, ``config.host`` is used; an empty string binds all
        interfaces.
    :param int port: listen port, ``config.port`` when unspecified.  A
        value of ``0`` binds an ephemeral port.
    :param config: a :data:`CONFIG` instance, shared by all sessions.
        Values ``timeout`` and ``read_deadline`` are seconds; a ``timeout``
        of ``0`` disables idle disconnection.  ``logdir`` is the folder of
        per-client audit logs, disabled when empty.
    :param session_factory: callable receiving ``(reader, writer, config)``,
        returning an object with coroutine method ``run()``.
    :param int limit: buffer limit of each client stream; longer lines are
        refused.
    :raises OSError: when the address cannot be bound.
    :return asyncio.Server: The return value is the same as
        :func:`asyncio.start_server`, an object which can be used
        to stop the service.
    """
    host = config.host if host is None else host
    port = config.port if port is None else port

    async def client_connected(reader, writer):
        await session_factory(reader, writer, config).run()

    return await asyncio.start_server(client_connected, host, port, limit=limit)


async def _sigterm_handler(server, log):
    log.info("SIGTERM received, closing server.")

    # This signals the completion of the server.wait_closed() Future,
    # allowing the main() function to complete.
    server.close()


def parse_server_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Line protocol echo server",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("host", nargs="?", default=CONFIG.host, help="bind address")
    parser.add_argument(
        "port", nargs="?", type=int, default=CONFIG.port, help="bind port"
    )
    parser.add_argument("--loglevel", default=CONFIG.loglevel, help="level name")
    parser.add_argument("--logfile", default=CONFIG.logfile, help="filepath")
    parser.add_argument("--logfmt", default=CONFIG.logfmt, help="log format")
    parser.add_argument(
        "--logdir",
        default=CONFIG.logdir,
        help="folder of per-client message logs (empty disables)",
    )
    parser.add_argument("--encoding", default=CONFIG.encoding, help="encoding name")
    parser.add_argument(
        "--encoding-errors",
        default=CONFIG.encoding_errors,
        help="handler of encoding errors",
    )
    parser.add_argument(
        "--timeout",
        type=accessories.parse_duration,
        default=CONFIG.timeout,
        help="idle disconnect, such as 30s or 1m30s (0 disables)",
    )
    parser.add_argument(
        "--read-deadline",
        type=accessories.parse_duration,
        default=CONFIG.read_deadline,
        help="maximum wait of each read attempt",
    )
    return vars(parser.parse_args(argv))


async def run_server(**kwds):
    """
    Program entry point for server daemon.

    This function configures a logger and creates a server for the
    given keyword arguments, any field of :data:`CONFIG`, serving
    forever, completing only upon receipt of SIGTERM.
    """
    config = CONFIG._replace(**kwds)
    log = accessories.make_logger(
        name="echoserver.server",
        loglevel=config.loglevel,
        logfile=config.logfile,
        logfmt=config.logfmt,
    )
    logger.debug("Server configuration: %s",
                 accessories.repr_mapping(config._asdict()))

    loop = asyncio.get_event_loop()

    # bind
    try:
        server = await create_server(config=config)
    except OSError as err:
        logger.error("Failed to listen on %s:%s: %s",
                     config.host, config.port, err)
        raise

    # SIGTERM cases server to gracefully stop
    loop.add_signal_handler(
        signal.SIGTERM, asyncio.ensure_future, _sigterm_handler(server, log)
    )

    for sock in server.sockets:
        logger.info("Server listening on %s",
                    accessories.format_peer(sock.getsockname()))

    # await completion of server stop
    try:
        await server.wait_closed()
    finally:
        # remove signal handler on stop
        loop.remove_signal_handler(signal.SIGTERM)

    logger.info("Server stop.")


def main():
    asyncio.run(run_server(**parse_server_args()))


if __name__ == "__main__":
    main()
