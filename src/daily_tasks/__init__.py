"""Daily task tracker: date/profile partitioned tasks with undo/redo, rollover and GitHub status sync."""

__version__ = "0.1.0"
