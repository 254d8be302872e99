from . import actions, push_notifications, tasks

__all__ = ["actions", "push_notifications", "tasks"]
