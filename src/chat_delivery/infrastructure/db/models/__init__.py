"""Import all models so Base.metadata knows every table."""
from chat_delivery.infrastructure.db.models.conversation import ConversationModel
from chat_delivery.infrastructure.db.models.message import MessageModel
from chat_delivery.infrastructure.db.models.participant import ParticipantModel
from chat_delivery.infrastructure.db.models.user import UserModel

__all__ = [
    "ConversationModel",
    "MessageModel",
    "ParticipantModel",
    "UserModel",
]
