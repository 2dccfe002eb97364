"""
Achievement repository - Data access layer for achievements and awards.
"""
import logging
from datetime import datetime
from typing import Dict, List, Set
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from progress_engine.models import Achievement, ParticipantAchievement
from progress_engine.services.achievement_service import AchievementStore

logger = logging.getLogger("progress_engine.achievements")


class AchievementRepository:
    """Repository for Achievement data access"""

    @staticmethod
    def list_for_challenge(db: Session, challenge_id: int) -> List[Achievement]:
        """Get challenge-specific achievements plus the defaults shared by all challenges"""
        return db.query(Achievement).filter(
            or_(Achievement.challenge_id == challenge_id, Achievement.challenge_id.is_(None))
        ).order_by(Achievement.display_order, Achievement.id).all()

    @staticmethod
    def create(db: Session, achievement: Achievement) -> Achievement:
        db.add(achievement)
        db.commit()
        db.refresh(achievement)
        return achievement


class ParticipantAchievementRepository:
    """Repository for earned achievements"""

    @staticmethod
    def list_for_participant(db: Session, participant_id: int) -> List[ParticipantAchievement]:
        return db.query(ParticipantAchievement).filter(
            ParticipantAchievement.participant_id == participant_id
        ).order_by(ParticipantAchievement.earned_at).all()

    @staticmethod
    def get_earned_at(db: Session, participant_id: int) -> Dict[int, datetime]:
        """Earned achievement id -> earned_at"""
        return {
            row.achievement_id: row.earned_at
            for row in ParticipantAchievementRepository.list_for_participant(db, participant_id)
        }

    @staticmethod
    def try_award(db: Session, participant_id: int, achievement_id: int, earned_at: datetime) -> bool:
        """
        Insert an earned achievement.

        The (participant, achievement) unique constraint decides: a violating
        insert is rolled back and reported as already earned.

        Returns:
            True if the row was inserted, False if it already existed
        """
        try:
            db.add(ParticipantAchievement(
                participant_id=participant_id,
                achievement_id=achievement_id,
                earned_at=earned_at
            ))
            db.commit()
            return True
        except IntegrityError:
            db.rollback()
            logger.debug(f"Achievement {achievement_id} already stored for participant {participant_id}")
            return False


class SqlAchievementStore(AchievementStore):
    """AchievementStore backed by the participant_achievements table"""

    def __init__(self, db: Session):
        self.db = db

    def get_earned_ids(self, participant_id: int) -> Set[int]:
        return set(ParticipantAchievementRepository.get_earned_at(self.db, participant_id))

    def try_award(self, participant_id: int, achievement_id: int, earned_at: datetime) -> bool:
        return ParticipantAchievementRepository.try_award(self.db, participant_id, achievement_id, earned_at)
