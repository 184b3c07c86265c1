from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class ConnectionState(str, Enum):
    DISCONNECTED = 'disconnected'
    CONNECTING = 'connecting'
    CONNECTED = 'connected'


class ActionKind(str, Enum):
    MINT = 'mint'
    UPDATE_METADATA = 'update_metadata'
    FETCH_METADATA = 'fetch_metadata'


class ActionState(str, Enum):
    IDLE = 'idle'
    SUBMITTED = 'submitted'
    CONFIRMED = 'confirmed'
    FAILED = 'failed'


@dataclass(frozen=True)
class Session:
    """Live association between a connected wallet address and its resolved role"""
    address: str
    signer: Any
    is_authorized_organizer: bool = False


@dataclass(frozen=True)
class TokenRecord:
    """Ticket token owned by the session address"""
    token_id: str
    metadata_uri: Optional[str] = None


@dataclass
class PendingAction:
    """State-changing request while its transaction is in flight"""
    kind: ActionKind
    token_id: str
    metadata_uri: str
    state: ActionState = ActionState.SUBMITTED
