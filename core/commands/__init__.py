"""
Tillpoint Command Layer — Boundary Rejections
===============================================
Requests are validated before they reach any store.
REJECTED requests carry a structured reason, never a bare string.
"""

from core.commands.rejection import (
    ReasonCode,
    RejectionReason,
)

__all__ = [
    "RejectionReason",
    "ReasonCode",
]
