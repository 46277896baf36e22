"""
Service Request Dispatch Portal.

Lifecycle and dispatch engine for customer service requests routed to partner branches.
"""

__version__ = "0.1.0"
__description__ = "Service Request Dispatch Portal"
