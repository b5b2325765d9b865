from .service import FILTER_MODES, TasksService, filter_tasks

__all__ = ["FILTER_MODES", "TasksService", "filter_tasks"]
