from __future__ import annotations

import re
import uuid
from typing import NewType

ConversationId = NewType("ConversationId", str)

# Legacy ids look like "conv_<millis>_<suffix>", new ones are UUID4 strings.
_CONVERSATION_ID_RE = re.compile(r"^[A-Za-z0-9_\-]{1,64}$")


def new_conversation_id() -> ConversationId:
    return ConversationId(str(uuid.uuid4()))


def is_well_formed_conversation_id(value: str) -> bool:
    return bool(_CONVERSATION_ID_RE.match(value))


def direct_pair_key(user_a: str, user_b: str) -> str:
    """Order-independent key of a two-person conversation.

    The length prefix keeps the key unambiguous when an id contains "|".
    """
    first, second = sorted((user_a, user_b))
    return f"{len(first)}:{first}|{second}"
