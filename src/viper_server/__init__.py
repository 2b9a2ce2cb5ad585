"""Viper: the AI assistant service behind PyThoughts.

This package provides a FastAPI application factory named ``create_app``
inside ``viper_server/server.py`` (see :func:`create_app`), the completion
clients it delegates to, and the chat panel state used by front-ends.

Typical usage
-------------
from viper_server import create_app
app = create_app()

or, from the provided launcher:

python scripts/run_server.py --host 127.0.0.1 --port 3001
"""

from __future__ import annotations

__all__ = ["create_app", "__version__", "get_version"]

# ---------------------------------------------------------------------
# Version handling
# ---------------------------------------------------------------------
__version__ = "0.3.0"


def get_version() -> str:
    """Return the package version."""
    return __version__


from .server import create_app  # noqa: E402
