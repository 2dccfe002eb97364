from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, Date, JSON, ForeignKey, UniqueConstraint
)
from sqlalchemy.orm import relationship
from datetime import datetime

from progress_engine.database import Base


class Challenge(Base):
    __tablename__ = "challenges"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    starts_at = Column(Date, nullable=False)
    ends_at = Column(Date, nullable=True)          # None for ongoing challenges
    ended_at = Column(DateTime, nullable=True)     # When an ongoing challenge was ended manually
    grace_period_days = Column(Integer, default=7)
    lock_entries_after_day = Column(Boolean, default=False)

    # Bonus configuration
    enable_streak_bonus = Column(Boolean, default=False)
    streak_bonus_points = Column(Integer, default=5)
    streak_bonus_mode = Column(String, default="flat")  # flat, per_streak_day
    enable_perfect_day_bonus = Column(Boolean, default=False)
    perfect_day_bonus_points = Column(Integer, default=10)

    # Task definitions (JSON list, see schemas.TaskDefinition)
    tasks = Column(JSON, default=list)

    created_at = Column(DateTime, default=datetime.now)

    participants = relationship("Participant", back_populates="challenge")


class Participant(Base):
    __tablename__ = "challenge_participants"

    id = Column(Integer, primary_key=True, index=True)
    challenge_id = Column(Integer, ForeignKey("challenges.id"), nullable=False, index=True)
    user_id = Column(String, nullable=False)
    status = Column(String, default="active")  # active, completed, abandoned
    current_streak = Column(Integer, default=0)
    longest_streak = Column(Integer, default=0)
    total_points = Column(Integer, default=0)  # Always re-summed, never incremented
    joined_at = Column(DateTime, default=datetime.now)

    challenge = relationship("Challenge", back_populates="participants")


class DailyEntry(Base):
    __tablename__ = "daily_entries"
    __table_args__ = (
        UniqueConstraint("participant_id", "entry_date", name="uq_daily_entry_participant_date"),
    )

    id = Column(Integer, primary_key=True, index=True)
    participant_id = Column(Integer, ForeignKey("challenge_participants.id"), nullable=False, index=True)
    entry_date = Column(Date, nullable=False)
    metric_data = Column(JSON, default=dict)  # task id -> submitted value
    notes = Column(String, nullable=True)
    is_completed = Column(Boolean, default=False)
    is_locked = Column(Boolean, default=False)
    points_earned = Column(Integer, default=0)  # Base points
    bonus_points = Column(Integer, default=0)
    submitted_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.now)


class PeriodicCompletion(Base):
    __tablename__ = "periodic_task_completions"
    __table_args__ = (
        UniqueConstraint("participant_id", "task_id", "period_start", name="uq_periodic_completion_period"),
    )

    id = Column(Integer, primary_key=True, index=True)
    participant_id = Column(Integer, ForeignKey("challenge_participants.id"), nullable=False, index=True)
    task_id = Column(String, nullable=False)
    frequency = Column(String, nullable=False)  # weekly, monthly
    period_start = Column(String, nullable=False)  # Period key (YYYY-MM-DD)
    period_end = Column(String, nullable=False)
    value = Column(JSON, nullable=True)
    points_earned = Column(Integer, default=0)
    completed_at = Column(DateTime, default=datetime.now)


class OnetimeCompletion(Base):
    __tablename__ = "onetime_task_completions"
    __table_args__ = (
        UniqueConstraint("participant_id", "task_id", name="uq_onetime_completion_task"),
    )

    id = Column(Integer, primary_key=True, index=True)
    participant_id = Column(Integer, ForeignKey("challenge_participants.id"), nullable=False, index=True)
    task_id = Column(String, nullable=False)
    value = Column(JSON, nullable=True)
    points_earned = Column(Integer, default=0)
    completed_at = Column(DateTime, default=datetime.now)


class Achievement(Base):
    __tablename__ = "achievements"

    id = Column(Integer, primary_key=True, index=True)
    challenge_id = Column(Integer, ForeignKey("challenges.id"), nullable=True)  # None = default for all
    name = Column(String, nullable=False)
    description = Column(String, default="")
    icon = Column(String, default="")
    category = Column(String, default="custom")
    trigger_type = Column(String, nullable=False)
    trigger_value = Column(Integer, default=0)
    is_hidden = Column(Boolean, default=False)
    display_order = Column(Integer, default=0)
    created_at = Column(DateTime, default=datetime.now)


class ParticipantAchievement(Base):
    __tablename__ = "participant_achievements"
    __table_args__ = (
        UniqueConstraint("participant_id", "achievement_id", name="uq_participant_achievement"),
    )

    id = Column(Integer, primary_key=True, index=True)
    participant_id = Column(Integer, ForeignKey("challenge_participants.id"), nullable=False, index=True)
    achievement_id = Column(Integer, ForeignKey("achievements.id"), nullable=False)
    earned_at = Column(DateTime, default=datetime.now)
    notified = Column(Boolean, default=False)
