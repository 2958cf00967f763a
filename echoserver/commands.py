"""
Commands and message dispatch of the line protocol.

:func:`dispatch` maps one trimmed client message to a :class:`CommandResult`.
Messages beginning with ``/`` are looked up in :data:`COMMANDS` by their
first word.
"""
# std imports
import collections
import datetime

__all__ = ("CommandResult", "COMMANDS", "MAX_MESSAGE_LENGTH",
           "dispatch", "is_too_long")

#: largest message accepted, in bytes of its encoding on the wire.
MAX_MESSAGE_LENGTH = 1024

MSG_EMPTY = "Say something..."
MSG_TOO_LONG = "Error: Message too long (max {0} bytes)".format(MAX_MESSAGE_LENGTH)
MSG_HELLO = "Hi there!"
MSG_GOODBYE = "Goodbye!"
MSG_UNKNOWN_COMMAND = "Unknown command"
MSG_CLOSING = "Closing connection"
MSG_ECHO_USAGE = "Usage: /echo <message>"

CommandResult = collections.namedtuple("CommandResult", ["response", "terminate"])
CommandResult.__new__.__defaults__ = (False,)


def is_too_long(message, encoding="utf8", encoding_errors="surrogateescape"):
    """
    Whether ``message`` exceeds :data:`MAX_MESSAGE_LENGTH` bytes.

    Length is measured in ``encoding``, the stream encoding of the session,
    so a message decoded with ``surrogateescape`` counts the bytes received.
    """
    return len(message.encode(encoding, encoding_errors)) > MAX_MESSAGE_LENGTH


def do_time(argument):
    """Current server time, RFC 3339."""
    now = datetime.datetime.now().astimezone()
    return CommandResult(now.isoformat(timespec="seconds"))


def do_quit(argument):
    return CommandResult(MSG_CLOSING, terminate=True)


def do_echo(argument):
    """
    Echo ``argument``, the text after the command and its whitespace.

    Whitespace between ``/echo`` and the text is collapsed, ``/echo   x``
    answers ``x``.
    """
    if argument:
        return CommandResult(argument)
    return CommandResult(MSG_ECHO_USAGE)


COMMANDS = {
    "/time": do_time,
    "/quit": do_quit,
    "/echo": do_echo,
}


def dispatch(message, encoding="utf8", encoding_errors="surrogateescape"):
    """
    Return :class:`CommandResult` for one trimmed client message.

    The order of checks matters: an over-long message is rejected even
    when it begins with ``/``.  ``encoding`` and ``encoding_errors`` are
    those of the client stream, see :func:`is_too_long`.
    """
    if not message:
        return CommandResult(MSG_EMPTY)
    if is_too_long(message, encoding, encoding_errors):
        return CommandResult(MSG_TOO_LONG)
    if message.startswith("/"):
        parts = message.split(None, 1)
        command = parts[0]
        argument = parts[1] if len(parts) > 1 else ""
        handler = COMMANDS.get(command)
        if handler is None:
            return CommandResult(MSG_UNKNOWN_COMMAND)
        return handler(argument)
    if message.casefold() == "hello":
        return CommandResult(MSG_HELLO)
    if message.casefold() == "bye":
        return CommandResult(MSG_GOODBYE, terminate=True)
    return CommandResult(message)
