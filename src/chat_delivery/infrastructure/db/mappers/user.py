from __future__ import annotations

from chat_delivery.domain.entities.user import UserProfile
from chat_delivery.infrastructure.db.models.user import UserModel


def model_to_entity(model: UserModel) -> UserProfile:
    return UserProfile(
        id=model.id,
        username=model.username,
        first_name=model.first_name,
        last_name=model.last_name,
        profile_image_url=model.profile_image_url,
    )
