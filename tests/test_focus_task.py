from datetime import datetime, timedelta

from focus_core.focus_task import progress_overview, select_focus_task
from focus_core.models import Task, TaskPriority, TaskStatus

NOW = datetime(2026, 10, 14, 10, 0)


def make_task(task_id, status=TaskStatus.TODO, **kwargs) -> Task:
    kwargs.setdefault('created_at', NOW - timedelta(days=10))
    return Task(id=task_id, title=f"Task {task_id}", status=status, **kwargs)


def test_no_tasks_selects_nothing():
    assert select_focus_task([]) is None


def test_only_done_tasks_selects_nothing():
    assert select_focus_task([make_task("a", TaskStatus.DONE)]) is None


def test_most_recently_edited_in_progress_task_wins():
    yesterday = make_task("a", TaskStatus.IN_PROGRESS, last_edited_at=NOW - timedelta(days=1))
    today = make_task("b", TaskStatus.IN_PROGRESS, last_edited_at=NOW)

    assert select_focus_task([yesterday, today]) is today


def test_in_progress_falls_back_to_created_at():
    edited = make_task("a", TaskStatus.IN_PROGRESS, last_edited_at=NOW - timedelta(days=3))
    created = make_task("b", TaskStatus.IN_PROGRESS, created_at=NOW - timedelta(days=1))

    assert select_focus_task([edited, created]) is created


def test_in_progress_beats_todo_with_deadline():
    urgent = make_task("a", deadline=NOW + timedelta(hours=1), priority=TaskPriority.HIGH)
    working = make_task("b", TaskStatus.IN_PROGRESS)

    assert select_focus_task([urgent, working]) is working


def test_in_progress_ties_keep_list_order():
    first = make_task("a", TaskStatus.IN_PROGRESS, last_edited_at=NOW)
    second = make_task("b", TaskStatus.IN_PROGRESS, last_edited_at=NOW)

    assert select_focus_task([first, second]) is first
    assert select_focus_task([second, first]) is second


def test_todo_deadline_tie_broken_by_priority():
    low = make_task("a", deadline=NOW + timedelta(days=3), priority=TaskPriority.LOW)
    high = make_task("b", deadline=NOW + timedelta(days=3), priority=TaskPriority.HIGH)

    assert select_focus_task([low, high]) is high


def test_todo_nearest_deadline_first():
    later = make_task("a", deadline=NOW + timedelta(days=5), priority=TaskPriority.HIGH)
    sooner = make_task("b", deadline=NOW + timedelta(days=1), priority=TaskPriority.LOW)

    assert select_focus_task([later, sooner]) is sooner


def test_todo_without_deadline_sorts_last():
    no_deadline = make_task("a", priority=TaskPriority.HIGH)
    far = make_task("b", deadline=NOW + timedelta(days=300))

    assert select_focus_task([no_deadline, far]) is far


def test_todo_without_priority_ranks_lowest():
    unset = make_task("a", deadline=NOW + timedelta(days=2))
    low = make_task("b", deadline=NOW + timedelta(days=2), priority=TaskPriority.LOW)

    assert select_focus_task([unset, low]) is low


def test_todo_full_tie_keeps_list_order():
    first = make_task("a", priority=TaskPriority.MEDIUM)
    second = make_task("b", priority=TaskPriority.MEDIUM)

    assert select_focus_task([first, second]) is first


def test_progress_overview_counts():
    tasks = [
        make_task("a", TaskStatus.DONE),
        make_task("b", TaskStatus.DONE),
        make_task("c", TaskStatus.IN_PROGRESS),
        make_task("d"),
    ]

    overview = progress_overview(tasks, total_study_minutes=150)

    assert overview == {
        'total_tasks': 4,
        'completed': 2,
        'in_progress': 1,
        'overall_progress': 50.0,
        'study_hours': 3,
    }


def test_progress_overview_empty():
    overview = progress_overview([], total_study_minutes=0)

    assert overview['overall_progress'] == 0.0
    assert overview['study_hours'] == 0
