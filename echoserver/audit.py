"""Per-client audit log of received messages."""
# std imports
import os
import logging

__all__ = ("AuditLog", "NullAuditLog", "open_audit_log")

logger = logging.getLogger("echoserver.audit")


class AuditLog:
    """
    Text file receiving one ``[timestamp] message`` line per message.

    The file is created, or truncated, when opened.  Each line is flushed
    as it is written.
    """

    def __init__(self, path, encoding="utf8"):
        self.path = path
        self._file = open(path, "w", encoding=encoding, errors="replace")

    def __repr__(self):
        return "<AuditLog {0!r}{1}>".format(
            self.path, " closed" if self.closed else "")

    @property
    def closed(self):
        return self._file is None

    def append(self, timestamp, message):
        """Write ``message`` received at ``timestamp``, a datetime."""
        self._file.write("[{0}] {1}\n".format(
            timestamp.isoformat(timespec="seconds"), message))
        self._file.flush()

    def close(self):
        if self._file is not None:
            self._file.close()
            self._file = None


class NullAuditLog:
    """Audit log that records nothing, used when audit logging is disabled."""

    path = None
    closed = False

    def append(self, timestamp, message):
        pass

    def close(self):
        self.closed = True


def audit_filename(peer):
    """Return file name for client ``peer``, ``'127.0.0.1:4000'`` -> ``'127.0.0.1_4000.log'``."""
    return "{0}.log".format(peer.replace(":", "_"))


def open_audit_log(directory, peer, encoding="utf8"):
    """
    Open audit log of client ``peer`` in ``directory``.

    :param str directory: folder of audit files.  When empty or ``None``,
        a :class:`NullAuditLog` is returned.
    :raises OSError: when the file cannot be created.
    """
    if not directory:
        return NullAuditLog()
    path = os.path.join(directory, audit_filename(peer))
    logger.debug("audit log for %s: %s", peer, path)
    return AuditLog(path, encoding=encoding)
