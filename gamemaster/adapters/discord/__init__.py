"""Discord adapter.

Turns render payloads into Discord views and carries clicks back to the
navigation router.
"""

from __future__ import annotations

from .builders import build_view
from .handlers import NavButton, apply_outcome

__all__ = ["NavButton", "apply_outcome", "build_view"]
