"""Fedora workstation installer (plan-driven, confirm-then-execute).

Core design goals:
- Read-only probe before any change
- One declarative plan, shown and approved up front
- Idempotent steps with primary/fallback channels
- Backups before every file edit, no automatic rollback
- Centralized logging and an end-of-run report
"""

__all__ = []
