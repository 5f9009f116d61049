from datetime import datetime
from enum import Enum
from typing import NamedTuple, TypedDict


class GiveawayStatus(Enum):
    "Lifecycle state of a giveaway, only OPEN can change"
    OPEN = "open"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class GiveawayOutcome(Enum):
    "What happened when a giveaway was resolved"
    NOOP = "noop"
    INSUFFICIENT_PARTICIPANTS = "insufficient_participants"
    WINNERS = "winners"
    FAILED = "failed"


class MessageHandle(NamedTuple):
    "Locate a Discord message"
    channel_id: int
    message_id: int


class GiveawayToSendData(TypedDict):
    "Data for a giveaway whose announcement is not sent yet"
    channel: int
    prize: str
    winners_count: int
    host: int
    created_at: datetime
    ends_at: datetime
    status: GiveawayStatus


class GiveawayData(TypedDict):
    "Data for a giveaway instance stored in the engine registry"
    id: int
    channel: int
    prize: str
    winners_count: int
    host: int
    created_at: datetime
    ends_at: datetime
    status: GiveawayStatus
    winners: list[int]


class ResolutionResult(TypedDict):
    "Result of a giveaway resolution"
    giveaway_id: int
    outcome: GiveawayOutcome
    winners: list[int]
