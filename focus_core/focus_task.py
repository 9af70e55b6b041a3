"""
Dashboard derivations over the task list.
Pure functions: no storage access, no side effects.
"""

import math
from typing import Iterable, Optional

from .models import Task, TaskPriority, TaskStatus

PRIORITY_RANK = {
    TaskPriority.HIGH: 3,
    TaskPriority.MEDIUM: 2,
    TaskPriority.LOW: 1,
    None: 0,
}


def _edited_at(task: Task) -> float:
    return (task.last_edited_at or task.created_at).timestamp()


def _deadline_key(task: Task) -> float:
    return task.deadline.timestamp() if task.deadline is not None else math.inf


def select_focus_task(tasks: Iterable[Task]) -> Optional[Task]:
    """
    Choose the task to highlight as "current".

    1. The most recently edited in-progress task (earliest in the list on ties).
    2. Otherwise the todo task with the nearest deadline, higher priority
       first on equal deadlines. Tasks without a deadline sort last.
    3. Otherwise None.
    """
    tasks = list(tasks)

    in_progress = [t for t in tasks if t.status == TaskStatus.IN_PROGRESS]
    if in_progress:
        # max() keeps the first of equal keys
        return max(in_progress, key=_edited_at)

    todo = [t for t in tasks if t.status == TaskStatus.TODO]
    if todo:
        # sorted() is stable, so full ties keep list order
        return sorted(
            todo,
            key=lambda t: (_deadline_key(t), -PRIORITY_RANK.get(t.priority, 0))
        )[0]

    return None


def progress_overview(tasks: Iterable[Task], total_study_minutes: int) -> dict:
    """Counts for the progress panel."""
    tasks = list(tasks)
    total = len(tasks)
    completed = sum(1 for t in tasks if t.status == TaskStatus.DONE)
    in_progress = sum(1 for t in tasks if t.status == TaskStatus.IN_PROGRESS)

    return {
        'total_tasks': total,
        'completed': completed,
        'in_progress': in_progress,
        'overall_progress': (completed / total) * 100 if total > 0 else 0.0,
        'study_hours': math.floor(total_study_minutes / 60 + 0.5),
    }
