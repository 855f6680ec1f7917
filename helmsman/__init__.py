__path__ = __import__("pkgutil").extend_path(__path__, __name__)  # NOQA: F-821
__title__ = 'helmsman'
__author__ = 'Eiko Reishin (影皇嶺臣)'
__license__ = 'MIT'
# Placeholder, modified by dynamic-versioning.
__version__ = "0.0.0"

from .application import *
from .command import *
from .configuration import *
from .faults import *
from .help import *
from .logger import *
from .options import *
from .parser import *
from .trie import *

VersionInfo = __import__("collections").namedtuple("VersionInfo", (
    "major",
    "minor",
    "micro",
    "releaselevel",
    "serial",
    "metadata"
))

# Placeholder, modified by dynamic-versioning.
version_info = VersionInfo(0, 0, 0, "final", 0, "")

__all__ = (
    "__path__",
    "__title__",
    "__author__",
    "__license__",
    "__version__",
    "version_info"
)

# Load the exposed API of the dispatcher
__all__ += application.__all__  # type: ignore[attr-defined]
# Load the exposed API of the commands
__all__ += command.__all__  # type: ignore[attr-defined]
# Load the exposed API of the configuration
__all__ += configuration.__all__  # type: ignore[attr-defined]
# Load the exposed API of the faults
__all__ += faults.__all__  # type: ignore[attr-defined]
# Load the exposed API of the help renderer
__all__ += help.__all__  # type: ignore[attr-defined]
# Load the exposed API of the logging levels
__all__ += logger.__all__  # type: ignore[attr-defined]
# Load the exposed API of the option definitions
__all__ += options.__all__  # type: ignore[attr-defined]
# Load the exposed API of the parsing engine
__all__ += parser.__all__  # type: ignore[attr-defined]
# Load the exposed API of the command trie
__all__ += trie.__all__  # type: ignore[attr-defined]
