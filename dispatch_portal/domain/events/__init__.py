"""
Domain events package.
"""

from .request_status_changed import RequestStatusChanged

__all__ = [
    "RequestStatusChanged",
]
