from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class SessionState(str, Enum):
    waiting = 'waiting'
    selecting = 'selecting'
    complete = 'complete'
    expired = 'expired'


@dataclass
class Session:
    session_code: str
    host_id: str
    host_name: str
    state: SessionState
    participant_count: int
    created_at: int
    last_activity_at: int


@dataclass
class Participant:
    participant_id: str
    display_name: str
    session_code: str
    joined_at: int
    has_submitted: bool = False
    is_host: bool = False

    def to_dict(self, is_online: Optional[bool] = None) -> Dict[str, Any]:
        data = {
            'participantId': self.participant_id,
            'displayName': self.display_name,
            'isHost': self.is_host,
            'hasSubmitted': self.has_submitted,
        }
        if is_online is not None:
            data['isOnline'] = is_online
        return data


@dataclass
class JoinResult:
    participant: Participant
    participant_count: int
    already_joined: bool = False


@dataclass
class OverlapResult:
    """Outcome of intersecting every participant's selections."""

    overlapping_options: List[Dict[str, Any]] = field(default_factory=list)
    all_selections: Dict[str, List[str]] = field(default_factory=dict)
    has_overlap: bool = False

    @property
    def option_ids(self) -> List[str]:
        return [opt['optionId'] for opt in self.overlapping_options]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'overlappingOptions': self.overlapping_options,
            'allSelections': self.all_selections,
            'hasOverlap': self.has_overlap,
        }
