"""
Model backends.

Importing this package registers the built-in ``hosted`` and ``bridge`` backends with
:func:`load_backend`.
"""

from verdant.backends.base import (
    BackendError,
    BaseBackend,
    load_backend,
    register_backend,
    registered_backends,
)
from verdant.backends.bridge import BridgeBackend
from verdant.backends.hosted import HostedBackend
from verdant.backends.parsing import parse_model_output

__all__ = [
    "BackendError",
    "BaseBackend",
    "BridgeBackend",
    "HostedBackend",
    "load_backend",
    "parse_model_output",
    "register_backend",
    "registered_backends",
]
