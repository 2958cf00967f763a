"""echoserver: an asyncio line protocol server with idle timeouts."""
# pylint: disable=wildcard-import,undefined-variable
from .stream_reader import *    # noqa
from .watchdog import *         # noqa
from .commands import *         # noqa
from .audit import *            # noqa
from .session import *          # noqa
from .server import *           # noqa
from .accessories import get_version as __get_version

__all__ = (
    stream_reader.__all__ +
    watchdog.__all__ +
    commands.__all__ +
    audit.__all__ +
    session.__all__ +
    server.__all__
)  # noqa

__license__ = 'ISC'
__version__ = __get_version()
