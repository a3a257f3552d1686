"""
Domain Models - Storage-agnostic data structures

These models represent the voting entities independent of the wire format.
The allocation engine and services operate on these models, not raw API
payloads.

Architecture:
- Domain models are pure Python objects (dataclasses)
- Wire details (JSON field names, aliases) live in models.api
- Business logic operates on these models, not response dicts
"""

from .voter import Voter
from .submission import Submission, derive_category, top_submissions

__all__ = [
    'Voter',
    'Submission',
    'derive_category',
    'top_submissions',
]
