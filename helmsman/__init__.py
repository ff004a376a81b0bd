__path__ = __import__("pkgutil").extend_path(__path__, __name__)  # NOQA: F-821
__title__ = 'helmsman'
__author__ = 'Eiko Reishin (影皇嶺臣)'
__license__ = 'MIT'
# Placeholder, modified by dynamic-versioning.
__version__ = "0.0.0"

import logging

from . import args
from . import log
from .actions import *
from .command import *
from .config import *
from .faults import *
from .futures import *
from .listeners import *
from .options import *
from .process import *
from .sdk import *
from .validation import *

logging.getLogger(__name__).addHandler(logging.NullHandler())

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
    "version_info",
    "args",
    "log",
)

# Load the exposed API of the actions
__all__ += actions.__all__  # type: ignore[attr-defined]
# Load the exposed API of the command assembler
__all__ += command.__all__  # type: ignore[attr-defined]
# Load the exposed API of the settings
__all__ += config.__all__  # type: ignore[attr-defined]
# Load the exposed API of the faults
__all__ += faults.__all__  # type: ignore[attr-defined]
# Load the exposed API of the futures
__all__ += futures.__all__  # type: ignore[attr-defined]
# Load the exposed API of the listeners
__all__ += listeners.__all__  # type: ignore[attr-defined]
# Load the exposed API of the option catalog
__all__ += options.__all__  # type: ignore[attr-defined]
# Load the exposed API of the process runner
__all__ += process.__all__  # type: ignore[attr-defined]
# Load the exposed API of the sdk
__all__ += sdk.__all__  # type: ignore[attr-defined]
# Load the exposed API of the validation
__all__ += validation.__all__  # type: ignore[attr-defined]
