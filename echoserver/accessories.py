"""Accessory functions."""
# std imports
import importlib.metadata
import logging
import re

__all__ = ('make_logger', 'parse_duration', 'format_peer', 'repr_mapping')


def get_version():
    return importlib.metadata.version("echoserver")


_DURATION_UNITS = {'h': 3600.0, 'm': 60.0, 's': 1.0, 'ms': 1e-3,
                   'us': 1e-6, 'µs': 1e-6, 'ns': 1e-9}
_DURATION_PART = re.compile(r'(\d+(?:\.\d*)?|\.\d+)(ms|us|µs|ns|h|m|s)')


def parse_duration(value):
    """
    Parse a duration string, returning seconds as float.

    Accepts bare numbers of seconds, or a sequence of number and unit
    pairs, where unit is one of ``h``, ``m``, ``s``, ``ms``, ``us`` or
    ``ns``.

    Example::

        >>> parse_duration('1m30s')
        90.0
        >>> parse_duration('2.5')
        2.5
    """
    if isinstance(value, (int, float)):
        seconds = float(value)
    else:
        text = value.strip()
        try:
            seconds = float(text)
        except ValueError:
            parts = _DURATION_PART.findall(text)
            if not parts or ''.join(num + unit for num, unit in parts) != text:
                raise ValueError('invalid duration: {0!r}'.format(value))
            seconds = sum(float(num) * _DURATION_UNITS[unit]
                          for num, unit in parts)
    if seconds < 0:
        raise ValueError('negative duration: {0!r}'.format(value))
    return seconds


def format_peer(peername):
    """
    Return ``host:port`` string for a socket peername.

    IPv6 hosts are bracketed, ``[::1]:4000``.  A missing peername, as
    for a transport that is already closed, is given as ``-``.
    """
    if not peername:
        return '-'
    if isinstance(peername, str):
        return peername
    host, port = peername[:2]
    if ':' in host:
        host = '[{0}]'.format(host)
    return '{0}:{1}'.format(host, port)


_DEFAULT_LOGFMT = ' '.join(('%(asctime)s',
                            '%(levelname)s',
                            '%(filename)s:%(lineno)d',
                            '%(message)s'))


def make_logger(name, loglevel='info', logfile=None, logfmt=_DEFAULT_LOGFMT):
    """Create and return simple logger for given arguments."""
    lvl = getattr(logging, loglevel.upper())
    logging.getLogger().setLevel(lvl)

    _cfg = {'format': logfmt}
    if logfile:
        _cfg['filename'] = logfile
    logging.basicConfig(**_cfg)
    return logging.getLogger(name)


def repr_mapping(mapping):
    """Return printable string, 'key=value [key=value ...]' for mapping."""
    return ' '.join('='.join(map(str, kv)) for kv in mapping.items())
