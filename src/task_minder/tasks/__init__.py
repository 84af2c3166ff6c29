"""
Task subsystem.

Components:
- date_keys.py: "MM/dd/yyyy" date keys, "HH:mm" due times, month day lists
- calendar_state.py: selected year/month/day and its date key
- task_models.py: data structures (Task, Priority)
- task_store.py: SQLite-backed TaskRepo with live per-day queries
- task_sync.py: latest-wins synchronizer over (user, date key)
- task_list.py: the tasks screen session (selection + live list + actions)
- edit_session.py: add/edit task flow
- reminders.py: in-process reminder scheduler for alert tasks
"""
