"""
Task selection service.
Partitions a challenge's task list by frequency and activity window.
"""
from datetime import date
from typing import Iterable, List

from progress_engine.constants import TaskFrequency
from progress_engine.schemas import TaskDefinition, TaskPartition
from progress_engine.services.date_service import DateService


class TaskService:
    """Service for selecting the tasks that apply to a day"""

    @staticmethod
    def is_task_active_on(task: TaskDefinition, day: date) -> bool:
        """
        Check whether a task's activity window covers a calendar date.

        Tasks without starts_at/ends_at are always active. Both bounds are
        inclusive calendar dates.
        """
        day = DateService.parse_local_date(day)
        if task.starts_at and day < task.starts_at:
            return False
        if task.ends_at and day > task.ends_at:
            return False
        return True

    @staticmethod
    def partition_tasks(tasks: Iterable[TaskDefinition], day: date) -> TaskPartition:
        """
        Split tasks by frequency, keeping only those active on `day`.

        One-time tasks are always included; they track their own completion.

        Args:
            tasks: Challenge task definitions
            day: Calendar date the partition is for

        Returns:
            TaskPartition with daily, weekly, monthly and onetime lists
        """
        partition = TaskPartition()
        for task in sorted(tasks, key=lambda t: t.order):
            if task.frequency == TaskFrequency.ONETIME:
                partition.onetime.append(task)
                continue
            if not TaskService.is_task_active_on(task, day):
                continue
            if task.frequency == TaskFrequency.WEEKLY:
                partition.weekly.append(task)
            elif task.frequency == TaskFrequency.MONTHLY:
                partition.monthly.append(task)
            else:
                partition.daily.append(task)
        return partition

    @staticmethod
    def tasks_with_frequency(tasks: Iterable[TaskDefinition], frequency: TaskFrequency) -> List[TaskDefinition]:
        """Filter tasks by frequency, ignoring activity windows"""
        frequency = TaskFrequency(frequency)
        return [task for task in tasks if task.frequency == frequency]

    @staticmethod
    def find_task(tasks: Iterable[TaskDefinition], task_id: str):
        """Get a task by id, or None"""
        for task in tasks:
            if task.id == task_id:
                return task
        return None
