"""
Entry repository - Data access layer for daily entries and task completions.
"""
from datetime import date
from typing import List, Optional
from sqlalchemy.orm import Session

from progress_engine.models import DailyEntry, PeriodicCompletion, OnetimeCompletion


class DailyEntryRepository:
    """Repository for DailyEntry data access"""

    @staticmethod
    def get_by_id(db: Session, entry_id: int) -> Optional[DailyEntry]:
        """Get daily entry by ID"""
        return db.query(DailyEntry).filter(DailyEntry.id == entry_id).first()

    @staticmethod
    def get_by_date(db: Session, participant_id: int, entry_date: date) -> Optional[DailyEntry]:
        """Get a participant's entry for a specific date"""
        return db.query(DailyEntry).filter(
            DailyEntry.participant_id == participant_id,
            DailyEntry.entry_date == entry_date
        ).first()

    @staticmethod
    def list_for_participant(db: Session, participant_id: int) -> List[DailyEntry]:
        """Get all entries of a participant, most recent first"""
        return db.query(DailyEntry).filter(
            DailyEntry.participant_id == participant_id
        ).order_by(DailyEntry.entry_date.desc()).all()

    @staticmethod
    def create(db: Session, entry: DailyEntry) -> DailyEntry:
        """Create new daily entry"""
        db.add(entry)
        db.commit()
        db.refresh(entry)
        return entry

    @staticmethod
    def update(db: Session, entry: DailyEntry) -> DailyEntry:
        """Update existing daily entry"""
        db.commit()
        db.refresh(entry)
        return entry

    @staticmethod
    def delete(db: Session, entry: DailyEntry) -> None:
        """Delete a daily entry"""
        db.delete(entry)
        db.commit()


class PeriodicCompletionRepository:
    """Repository for weekly/monthly task completions"""

    @staticmethod
    def get_for_period(
        db: Session, participant_id: int, task_id: str, period_start: str
    ) -> Optional[PeriodicCompletion]:
        """Get the completion of a task for the period starting at period_start"""
        return db.query(PeriodicCompletion).filter(
            PeriodicCompletion.participant_id == participant_id,
            PeriodicCompletion.task_id == task_id,
            PeriodicCompletion.period_start == period_start
        ).first()

    @staticmethod
    def list_for_participant(db: Session, participant_id: int) -> List[PeriodicCompletion]:
        return db.query(PeriodicCompletion).filter(
            PeriodicCompletion.participant_id == participant_id
        ).order_by(PeriodicCompletion.period_start).all()

    @staticmethod
    def create(db: Session, completion: PeriodicCompletion) -> PeriodicCompletion:
        db.add(completion)
        db.commit()
        db.refresh(completion)
        return completion

    @staticmethod
    def delete(db: Session, completion: PeriodicCompletion) -> None:
        db.delete(completion)
        db.commit()


class OnetimeCompletionRepository:
    """Repository for one-time task completions"""

    @staticmethod
    def get_for_task(db: Session, participant_id: int, task_id: str) -> Optional[OnetimeCompletion]:
        return db.query(OnetimeCompletion).filter(
            OnetimeCompletion.participant_id == participant_id,
            OnetimeCompletion.task_id == task_id
        ).first()

    @staticmethod
    def list_for_participant(db: Session, participant_id: int) -> List[OnetimeCompletion]:
        return db.query(OnetimeCompletion).filter(
            OnetimeCompletion.participant_id == participant_id
        ).order_by(OnetimeCompletion.completed_at).all()

    @staticmethod
    def create(db: Session, completion: OnetimeCompletion) -> OnetimeCompletion:
        db.add(completion)
        db.commit()
        db.refresh(completion)
        return completion

    @staticmethod
    def delete(db: Session, completion: OnetimeCompletion) -> None:
        db.delete(completion)
        db.commit()
