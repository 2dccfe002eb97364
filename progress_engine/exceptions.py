"""
Custom exceptions for the progress engine.
Provides specific exception types for the persistence-facing operations.
Pure scoring and aggregation code does not raise these.
"""
from datetime import date
from typing import Union


class ProgressEngineException(Exception):
    """Base exception for the progress engine"""
    pass


class ParticipantNotFoundException(ProgressEngineException):
    """Raised when a participant is not found"""
    def __init__(self, participant_id: int):
        self.participant_id = participant_id
        super().__init__(f"Participant with ID {participant_id} not found")


class ChallengeNotFoundException(ProgressEngineException):
    """Raised when a challenge is not found"""
    def __init__(self, challenge_id: int):
        self.challenge_id = challenge_id
        super().__init__(f"Challenge with ID {challenge_id} not found")


class TaskNotFoundException(ProgressEngineException):
    """Raised when a task id is not part of the challenge's task list"""
    def __init__(self, task_id: str):
        self.task_id = task_id
        super().__init__(f"Task {task_id} not found in challenge")


class EntryNotFoundException(ProgressEngineException):
    """Raised when a daily entry or completion is not found"""
    def __init__(self, entry_id: Union[int, str]):
        self.entry_id = entry_id
        super().__init__(f"Entry {entry_id} not found")


class EntryLockedException(ProgressEngineException):
    """Raised when modifying a locked daily entry"""
    def __init__(self, entry_date: date):
        self.entry_date = entry_date
        super().__init__(f"Entry for {entry_date.isoformat()} is locked and cannot be modified")


class EntryNotAllowedException(ProgressEngineException):
    """Raised when the challenge does not accept entries right now"""
    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Entry not allowed: {reason}")


class DuplicateCompletionException(ProgressEngineException):
    """Raised when a task was already completed for its period"""
    def __init__(self, task_id: str, period_key: str):
        self.task_id = task_id
        self.period_key = period_key
        super().__init__(f"Task {task_id} already completed for {period_key}")


class ValidationException(ProgressEngineException):
    """Raised when submitted data fails validation"""
    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(f"Validation error for {field}: {message}")
