"""
Infrastructure package.

Persistence (SQL and in-memory), notifications and monitoring. Import
the submodules directly; this package does not re-export them.
"""
