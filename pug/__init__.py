"""Tasks, scheduling, task groups, key bindings and navigation for driving terraform."""

__version__ = "0.1.0"