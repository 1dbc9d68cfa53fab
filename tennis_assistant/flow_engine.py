"""
Flow engine
───────────
Guided multi-turn flows driven by the tables in flow_config.py:

• detect_intent  – continue / start / none
• start_flow     – enter a flow and ask its first question
• process_step   – validate one answer, advance or finalise

Callers hold the session lock while these mutate the session.
"""
from __future__ import annotations

import logging
from typing import Optional

from .catalog import CatalogStore
from .enums import FlowIntentKind, FlowType
from .flow_completions import COMPLETION_GENERATORS
from .flow_config import FLOW_KEYWORDS, steps_for
from .models import FlowIntent, FlowResult, Idle, InFlow, Session
from .utils.helpers import normalize_input
from .utils.smart_logger import get_smart_logger

log = logging.getLogger(__name__)
smart_log = get_smart_logger("flow_engine")

# Fields mirrored into user_preferences as soon as they are answered
PREFERENCE_FIELDS = ("level", "budget")


def detect_intent(message: str, session: Session) -> FlowIntent:
    if isinstance(session.flow_state, InFlow):
        return FlowIntent(FlowIntentKind.CONTINUE, session.flow_state.flow_type)

    text = normalize_input(message)
    for flow_type, keywords in FLOW_KEYWORDS.items():
        if any(k in text for k in keywords):
            return FlowIntent(FlowIntentKind.START, flow_type)
    return FlowIntent(FlowIntentKind.NONE)


def start_flow(session: Session, flow_type: FlowType) -> str:
    steps = steps_for(flow_type)
    if not steps:
        raise ValueError(f"flow {flow_type.value} has no steps")
    session.flow_state = InFlow(flow_type)
    log.info(f"FLOW_STARTED | session={session.id} | flow={flow_type.value}")
    return steps[0].question


def process_step(session: Session, message: str, catalog: CatalogStore) -> Optional[FlowResult]:
    """Handle one answer for the active flow. Returns None when no flow is active."""
    state = session.flow_state
    if not isinstance(state, InFlow):
        return None

    steps = steps_for(state.flow_type)
    if state.step_index >= len(steps):
        # Completed flows are normally cleared right away; recover if not
        log.warning(f"FLOW_STALE_STATE | session={session.id} | flow={state.flow_type.value}")
        session.flow_state = Idle()
        return None

    step = steps[state.step_index]
    value = step.canonicalize(normalize_input(message))

    if not step.is_valid(value):
        smart_log.flow_step(session.id, state.flow_type.value, state.step_index, valid=False)
        return FlowResult(response=f"❌ {step.error}<br><br>{step.question}", invalid=True)

    smart_log.flow_step(session.id, state.flow_type.value, state.step_index, valid=True)
    new_state = state.advance(step.field, value)
    if step.field in PREFERENCE_FIELDS:
        setattr(session.user_preferences, step.field, value)

    if not new_state.is_complete:
        session.flow_state = new_state
        next_step = steps[new_state.step_index]
        return FlowResult(
            response=next_step.question,
            progress=f"{new_state.step_index + 1}/{len(steps)}",
        )

    return _finalise(session, new_state, message, catalog)


def _finalise(session: Session, state: InFlow, message: str, catalog: CatalogStore) -> FlowResult:
    session.flow_state = Idle()
    session.flow_count += 1
    log.info(
        f"FLOW_COMPLETED | session={session.id} | flow={state.flow_type.value} | "
        f"data={state.collected} | flows={session.flow_count}"
    )
    generator = COMPLETION_GENERATORS[state.flow_type]
    return generator(dict(state.collected), catalog, message)
