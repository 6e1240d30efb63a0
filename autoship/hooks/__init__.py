"""Extension points plugins tap into."""

from .points import ReleaseHooks, make_hooks
from .registry import HookKind, HookPoint, HookResult, Tap, exception_origin

__all__ = [
    "HookKind",
    "HookPoint",
    "HookResult",
    "ReleaseHooks",
    "Tap",
    "exception_origin",
    "make_hooks",
]
