"""
Dataclass models for sessions, flow state, catalog entries and replies.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from .enums import FlowIntentKind, FlowType
from .flow_config import FLOW_STEPS


# ─────────────────────────────────────────────────────────────
# Flow state: Idle | InFlow
# ─────────────────────────────────────────────────────────────
@dataclass(frozen=True)
class Idle:
    """No guided flow is running."""


@dataclass(frozen=True)
class InFlow:
    """A guided flow at `step_index`; equal to the step count once all answers are in."""
    flow_type: FlowType
    step_index: int = 0
    collected: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        total = len(FLOW_STEPS[self.flow_type])
        if not 0 <= self.step_index <= total:
            raise ValueError(
                f"step_index {self.step_index} out of range for {self.flow_type.value} ({total} steps)"
            )

    @property
    def is_complete(self) -> bool:
        return self.step_index == len(FLOW_STEPS[self.flow_type])

    def advance(self, field_name: str, value: str) -> "InFlow":
        collected = dict(self.collected)
        collected[field_name] = value
        return InFlow(self.flow_type, self.step_index + 1, collected)


FlowState = Union[Idle, InFlow]


@dataclass
class UserPreferences:
    level: Optional[str] = None
    budget: Optional[str] = None
    playing_surface: Optional[str] = None
    playing_style: Optional[str] = None

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {
            "level": self.level,
            "budget": self.budget,
            "playingSurface": self.playing_surface,
            "playingStyle": self.playing_style,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "UserPreferences":
        data = data or {}
        return cls(
            level=data.get("level"),
            budget=data.get("budget"),
            playing_surface=data.get("playingSurface") or data.get("playing_surface"),
            playing_style=data.get("playingStyle") or data.get("playing_style"),
        )


@dataclass
class Session:
    id: str
    created_at: datetime
    last_activity: datetime
    is_expired: bool = False
    token_count: int = 0
    chat_count: int = 0
    flow_count: int = 0
    total_cost: float = 0.0
    current_chat_cost: float = 0.0
    conversation_history: List[Dict[str, str]] = field(default_factory=list)
    flow_state: FlowState = field(default_factory=Idle)
    user_preferences: UserPreferences = field(default_factory=UserPreferences)

    # Read-only views used by the JSON payloads
    @property
    def current_flow(self) -> Optional[str]:
        return self.flow_state.flow_type.value if isinstance(self.flow_state, InFlow) else None

    @property
    def flow_data(self) -> Dict[str, str]:
        return dict(self.flow_state.collected) if isinstance(self.flow_state, InFlow) else {}

    @property
    def flow_step(self) -> int:
        return self.flow_state.step_index if isinstance(self.flow_state, InFlow) else 0


@dataclass(frozen=True)
class Product:
    id: Union[int, str]
    name: str
    description: str
    price: float
    category: str
    image: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "price": self.price,
            "category": self.category,
            "image": self.image,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Product":
        return cls(
            id=data["id"],
            name=str(data.get("name", "")),
            description=str(data.get("description", "")),
            price=float(data.get("price", 0)),
            category=str(data.get("category", "")),
            image=str(data.get("image", "")),
        )


@dataclass(frozen=True)
class UsageSnapshot:
    token_limit_reached: bool
    flow_limit_reached: bool
    chat_limit_reached: bool
    cost_limit_reached: bool
    session_expired: bool
    current_chat_cost: float
    remaining_chats: int
    remaining_budget: float


@dataclass(frozen=True)
class TokenUsage:
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int


@dataclass(frozen=True)
class LLMReply:
    content: str
    usage: TokenUsage


@dataclass(frozen=True)
class FlowIntent:
    kind: FlowIntentKind
    flow_type: Optional[FlowType] = None


@dataclass
class FlowResult:
    """Outcome of one flow step (question, re-prompt or completion)."""
    response: str
    invalid: bool = False
    completed: bool = False
    progress: Optional[str] = None
    recommendations: Optional[str] = None
    products: List[Product] = field(default_factory=list)
    ask_order_number: bool = False


@dataclass
class ChatResult:
    payload: Dict[str, Any]
    status_code: int = 200
