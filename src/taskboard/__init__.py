"""
Taskboard: a task-management REST service with a cached client.
"""

__version__ = "1.0.0"
