"""
Caller identity for the HTTP layer.

Authentication itself happens in front of the service; the engine only
needs a stable user id for ownership checks.
"""

from .dependencies import get_current_user_id

__all__ = ['get_current_user_id']
