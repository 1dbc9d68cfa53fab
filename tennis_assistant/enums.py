# tennis_assistant/enums.py
from enum import Enum


class FlowType(str, Enum):
    """Guided flows, listed in intent-detection priority order."""
    PRODUCT_CONSULTATION = "product_consultation"
    SIZE_GUIDE = "size_guide"
    ORDER_SUPPORT = "order_support"


class FlowIntentKind(str, Enum):
    CONTINUE = "continue"
    START = "start"
    NONE = "none"


class PlayerLevel(str, Enum):
    PRINCIPIANTE = "principiante"
    INTERMEDIO = "intermedio"
    AVANZATO = "avanzato"
    PROFESSIONALE = "professionale"


class BudgetBucket(str, Enum):
    UNDER_50 = "under50"
    FROM_50_TO_100 = "50to100"
    FROM_100_TO_200 = "100to200"
    OVER_200 = "over200"


class MessageRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
