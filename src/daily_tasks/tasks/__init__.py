"""
Task subsystem.

Components:
- task_models.py: data structures (Task, GithubMetadata, LinkedPR, enums) + JSON codec
- partition.py: storage key layout and profile-name rules
- task_store.py: partitioned storage, legacy migration, rollover
- status.py: explicit transitions and status derived from GitHub state
- reconcile.py: refresh of cached GitHub metadata
- history.py: undo/redo snapshots
- session.py: one (date, profile) view owning its history
"""
