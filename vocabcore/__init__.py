"""Vocabcore - SM-2 spaced repetition for vocabulary cards."""

from .models import (
    Card,
    CardContent,
    CardDraft,
    CardFace,
    Difficulty,
    Rating,
    SessionSummary,
    StudySession,
)
from .constants import DEFAULT_SESSION_SIZE
from .db import CardDatabase, CardStore
from .scheduler import SM2_Scheduler, SM2SchedulerConfig
from .selector import SessionSelector
from .session_runner import SessionRunner

__all__ = [
    "Card",
    "CardContent",
    "CardDraft",
    "CardFace",
    "Difficulty",
    "Rating",
    "SessionSummary",
    "StudySession",
    "DEFAULT_SESSION_SIZE",
    "CardDatabase",
    "CardStore",
    "SM2_Scheduler",
    "SM2SchedulerConfig",
    "SessionSelector",
    "SessionRunner",
]
