"""Shared test fixtures."""
from __future__ import annotations

import asyncio
import dataclasses
import itertools
import json
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Callable

import pytest

from chat_delivery.application.dto.message import NewMessageDTO
from chat_delivery.application.dto.principal import Principal
from chat_delivery.application.exceptions import PersistenceError
from chat_delivery.domain.entities.conversation import Conversation
from chat_delivery.domain.entities.message import Message
from chat_delivery.domain.entities.participant import Participant
from chat_delivery.domain.entities.user import UserProfile
from chat_delivery.domain.events.message_created import MessageCreated
from chat_delivery.domain.value_objects.enums import ConnectionState
from chat_delivery.domain.value_objects.ids import direct_pair_key, new_conversation_id


@pytest.fixture
def alice() -> Principal:
    return Principal(user_id="alice")


@pytest.fixture
def bob() -> Principal:
    return Principal(user_id="bob")


def make_profile(user_id: str) -> UserProfile:
    return UserProfile(
        id=user_id,
        username=user_id,
        first_name=user_id.capitalize(),
        last_name=None,
        profile_image_url=f"https://img.example/{user_id}.png",
    )


def make_conversation(
    *,
    members: tuple[str, str] | None = ("alice", "bob"),
    conversation_id: str | None = None,
    name: str | None = None,
    last_message_at: datetime | None = None,
) -> Conversation:
    now = datetime.now(timezone.utc)
    is_group = members is None
    return Conversation(
        id=conversation_id or new_conversation_id(),
        name=name,
        is_group=is_group,
        pair_key=None if is_group else direct_pair_key(*members),
        last_message_at=last_message_at or now,
        created_at=now,
    )


@dataclass
class FakeParticipantReader:
    _participants: list[Participant] = field(default_factory=list)

    async def is_participant(self, conversation_id: str, user_id: str) -> bool:
        return any(
            p.conversation_id == conversation_id and p.user_id == user_id
            for p in self._participants
        )

    async def list_participants(self, conversation_id: str) -> list[Participant]:
        return [p for p in self._participants if p.conversation_id == conversation_id]

    async def list_for_conversations(self, conversation_ids: list[str]) -> list[Participant]:
        return [p for p in self._participants if p.conversation_id in conversation_ids]


@dataclass
class FakeParticipantWriter:
    _reader: FakeParticipantReader
    fail_after: int | None = None
    _added: int = 0

    async def add(self, participant: Participant) -> None:
        if self.fail_after is not None and self._added >= self.fail_after:
            raise PersistenceError("participant insert failed")
        self._added += 1
        self._reader._participants.append(participant)


@dataclass
class FakeConversationReader:
    _participants: FakeParticipantReader
    _store: dict[str, Conversation] = field(default_factory=dict)

    async def get_by_id(self, conversation_id: str) -> Conversation | None:
        return self._store.get(conversation_id)

    async def get_by_pair_key(self, pair_key: str) -> Conversation | None:
        return next((c for c in self._store.values() if c.pair_key == pair_key), None)

    async def list_for_user(self, user_id: str, *, limit: int = 100) -> list[Conversation]:
        ids = {
            p.conversation_id
            for p in self._participants._participants
            if p.user_id == user_id
        }
        convs = [c for c in self._store.values() if c.id in ids]
        convs.sort(key=lambda c: c.last_message_at or c.created_at, reverse=True)
        return convs[:limit]


@dataclass
class FakeConversationWriter:
    _reader: FakeConversationReader
    fail: bool = False

    async def create_direct(
        self,
        conversation: Conversation,
        participants: list[Participant],
    ) -> tuple[Conversation, bool]:
        if self.fail:
            raise PersistenceError("conversation insert failed")
        existing = await self._reader.get_by_pair_key(conversation.pair_key or "")
        if existing is not None:
            return existing, False
        self._reader._store[conversation.id] = conversation
        self._reader._participants._participants.extend(participants)
        return conversation, True

    async def create(self, conversation: Conversation) -> Conversation:
        if self.fail:
            raise PersistenceError("conversation insert failed")
        self._reader._store[conversation.id] = conversation
        return conversation

    async def touch_last_message_at(self, conversation_id: str, ts: datetime) -> None:
        conv = self._reader._store[conversation_id]
        if conv.last_message_at is None or conv.last_message_at <= ts:
            self._reader._store[conversation_id] = dataclasses.replace(conv, last_message_at=ts)


@dataclass
class FakeMessageReader:
    _messages: list[Message] = field(default_factory=list)

    async def list_messages(
        self,
        conversation_id: str,
        *,
        before_id: int | None = None,
        limit: int = 50,
    ) -> list[Message]:
        rows = [
            m for m in self._messages
            if m.conversation_id == conversation_id
            and (before_id is None or m.id < before_id)
        ]
        rows.sort(key=lambda m: m.id, reverse=True)
        return rows[:limit]


@dataclass
class FakeMessageWriter:
    _reader: FakeMessageReader
    fail: bool = False
    delay: float = 0.0
    _ids: Any = field(default_factory=lambda: itertools.count(1))

    async def create(self, data: NewMessageDTO) -> Message:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise PersistenceError("message insert failed")
        msg = Message(
            id=next(self._ids),
            conversation_id=data.conversation_id,
            sender_id=data.sender_id,
            receiver_id=data.receiver_id,
            content=data.content,
            message_type=data.message_type,
            is_read=False,
            created_at=data.created_at,
        )
        self._reader._messages.append(msg)
        return msg

    async def mark_read(self, conversation_id: str, reader_id: str) -> int:
        updated = 0
        for i, m in enumerate(self._reader._messages):
            if m.conversation_id == conversation_id and m.sender_id != reader_id and not m.is_read:
                self._reader._messages[i] = dataclasses.replace(m, is_read=True)
                updated += 1
        return updated


@dataclass
class FakeUserReader:
    _profiles: dict[str, UserProfile] = field(default_factory=dict)

    async def exists(self, user_id: str) -> bool:
        # Yield like a real lookup so concurrent callers interleave.
        await asyncio.sleep(0)
        return user_id in self._profiles

    async def get_profiles(self, user_ids: list[str]) -> dict[str, UserProfile]:
        return {uid: self._profiles[uid] for uid in user_ids if uid in self._profiles}


@dataclass
class FakeUoW:
    """In-memory UoW for unit tests."""

    participants: FakeParticipantReader = field(default_factory=FakeParticipantReader)
    participants_w: FakeParticipantWriter | None = None
    conversations: FakeConversationReader | None = None
    conversations_w: FakeConversationWriter | None = None
    messages: FakeMessageReader = field(default_factory=FakeMessageReader)
    messages_w: FakeMessageWriter | None = None
    users: FakeUserReader = field(default_factory=FakeUserReader)
    _committed: bool = False
    _rolled_back: bool = False

    def __post_init__(self) -> None:
        if self.participants_w is None:
            self.participants_w = FakeParticipantWriter(self.participants)
        if self.conversations is None:
            self.conversations = FakeConversationReader(self.participants)
        if self.conversations_w is None:
            self.conversations_w = FakeConversationWriter(self.conversations)
        if self.messages_w is None:
            self.messages_w = FakeMessageWriter(self.messages)

    def add_users(self, *user_ids: str) -> None:
        for uid in user_ids:
            self.users._profiles[uid] = make_profile(uid)

    def add_conversation(self, conversation: Conversation, *members: str) -> Conversation:
        self.conversations._store[conversation.id] = conversation
        for uid in members:
            self.participants._participants.append(
                Participant(
                    conversation_id=conversation.id,
                    user_id=uid,
                    joined_at=conversation.created_at,
                )
            )
        return conversation

    async def flush(self) -> None:
        pass

    async def commit(self) -> None:
        self._committed = True

    async def rollback(self) -> None:
        self._rolled_back = True


def uow_factory_for(uow: FakeUoW) -> Callable[[], Any]:
    @asynccontextmanager
    async def factory() -> AsyncIterator[FakeUoW]:
        yield uow

    return factory


@pytest.fixture
def uow() -> FakeUoW:
    uow = FakeUoW()
    uow.add_users("alice", "bob", "carol")
    return uow


@pytest.fixture
def direct_conversation(uow: FakeUoW) -> Conversation:
    return uow.add_conversation(make_conversation(), "alice", "bob")


@dataclass(eq=False)
class FakeConnection:
    """Registry-side stand-in for a WebSocket connection."""

    state: ConnectionState = ConnectionState.OPEN
    fail: bool = False
    frames: list[str] = field(default_factory=list)
    close_code: int | None = None

    async def send_text(self, raw: str) -> None:
        if self.fail:
            raise RuntimeError("transport is closing")
        self.frames.append(raw)

    def mark_closed(self) -> None:
        self.state = ConnectionState.CLOSED

    async def close(self, code: int = 1000, reason: str | None = None) -> None:
        self.state = ConnectionState.CLOSED
        self.close_code = code

    def json_frames(self) -> list[dict[str, Any]]:
        return [json.loads(f) for f in self.frames]


@dataclass
class RecordingBroadcaster:
    events: list[MessageCreated] = field(default_factory=list)
    delays: dict[str, float] = field(default_factory=dict)
    fail: bool = False

    async def broadcast(self, event: MessageCreated) -> None:
        delay = self.delays.get(event.message.content, 0.0)
        if delay:
            await asyncio.sleep(delay)
        if self.fail:
            raise RuntimeError("fan-out unavailable")
        self.events.append(event)
