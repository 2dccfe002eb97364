"""
Challenge repository - Data access layer for challenges and participants.
"""
from typing import List, Optional
from sqlalchemy.orm import Session

from progress_engine.models import Challenge, Participant


class ChallengeRepository:
    """Repository for Challenge data access"""

    @staticmethod
    def get_by_id(db: Session, challenge_id: int) -> Optional[Challenge]:
        """Get challenge by ID"""
        return db.query(Challenge).filter(Challenge.id == challenge_id).first()

    @staticmethod
    def create(db: Session, challenge: Challenge) -> Challenge:
        """Create new challenge"""
        db.add(challenge)
        db.commit()
        db.refresh(challenge)
        return challenge


class ParticipantRepository:
    """Repository for Participant data access"""

    @staticmethod
    def get_by_id(db: Session, participant_id: int) -> Optional[Participant]:
        """Get participant by ID"""
        return db.query(Participant).filter(Participant.id == participant_id).first()

    @staticmethod
    def list_by_challenge(db: Session, challenge_id: int) -> List[Participant]:
        """Get all participants of a challenge"""
        return db.query(Participant).filter(
            Participant.challenge_id == challenge_id
        ).order_by(Participant.id).all()

    @staticmethod
    def create(db: Session, participant: Participant) -> Participant:
        """Create new participant"""
        db.add(participant)
        db.commit()
        db.refresh(participant)
        return participant

    @staticmethod
    def update(db: Session, participant: Participant) -> Participant:
        """Update existing participant"""
        db.commit()
        db.refresh(participant)
        return participant
