"""
Tasks Minder: a per-user, per-day to-do list with reminders.

Subpackages:
- tasks/: calendar selection, task storage, live list synchronization, edit flow, reminders
- account/: local identity (anonymous or email/password) and account screens
- settings/: remote feature flags and theme preferences
- core/: shared ports, state streams, notices and the action runner
- cli/, connectors/: console entrypoint and REPL
"""

__version__ = "0.1.0"
