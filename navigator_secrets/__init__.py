"""Navigator Secrets.

Field-level envelope encryption for consumer secrets.
"""
from .version import __version__

__all__ = ["__version__"]
