"""Domain entities exchanged with the server as JSON objects."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import IntEnum
from typing import Any

from .errors import DomainError

_DAY_NAMES = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
_MONTH_NAMES = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)


def _as_int(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return 0


def _as_float(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    return float(value)


def _as_str(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _format_text_date(moment: datetime | None) -> str:
    if moment is None:
        return ""
    return (
        f"{_DAY_NAMES[moment.weekday()]} {_MONTH_NAMES[moment.month - 1]} "
        f"{moment.day} {moment:%H:%M:%S} {moment.year}"
    )


def _parse_text_date(text: str) -> datetime | None:
    parts = text.split()
    if len(parts) != 5 or parts[1] not in _MONTH_NAMES:
        return None
    _, month_name, day, clock, year = parts
    try:
        hour, minute, second = (int(p) for p in clock.split(":"))
        return datetime(
            int(year), _MONTH_NAMES.index(month_name) + 1, int(day), hour, minute, second
        )
    except ValueError:
        return None


def _format_iso(moment: datetime | None) -> str:
    return "" if moment is None else moment.isoformat(timespec="seconds")


def _parse_iso(text: str) -> datetime | None:
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


class PermissionLevel(IntEnum):
    UNKNOWN = 0
    ADMIN = 1
    USER = 2


@dataclass
class ChatRoom:
    """A chat room; only its id, name and message ids travel as JSON."""

    chat_room_name: str = ""
    user_ids: list[int] = field(default_factory=list)
    chat_ids: list[int] = field(default_factory=list)
    chat_room_id: int = -1

    def add_chat_id(self, chat_id: int) -> None:
        self.chat_ids.append(chat_id)

    def to_json(self) -> dict[str, Any]:
        return {
            "chatRoomId": self.chat_room_id,
            "chatRoomName": self.chat_room_name,
            "chatIds": {f"chatId{i}": cid for i, cid in enumerate(self.chat_ids)},
        }

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> ChatRoom:
        chat_ids = data.get("chatIds")
        chat_ids = chat_ids if isinstance(chat_ids, dict) else {}
        return cls(
            chat_room_id=_as_int(data.get("chatRoomId")),
            chat_room_name=_as_str(data.get("chatRoomName")),
            chat_ids=[_as_int(chat_ids.get(f"chatId{i}")) for i in range(len(chat_ids))],
        )


@dataclass
class ChatUnit:
    """One chat message."""

    chat_id: int = -1
    user_id: int = -1
    chat_time: datetime | None = None
    chat_str: str = ""

    def to_json(self) -> dict[str, Any]:
        return {
            "chatId": self.chat_id,
            "userId": self.user_id,
            "chatTime": _format_text_date(self.chat_time),
            "chatStr": self.chat_str,
        }

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> ChatUnit:
        return cls(
            chat_id=_as_int(data.get("chatId")),
            user_id=_as_int(data.get("userId")),
            chat_time=_parse_text_date(_as_str(data.get("chatTime"))),
            chat_str=_as_str(data.get("chatStr")),
        )


@dataclass
class Plant:
    """A plant with its latest sensor readings."""

    plant_id: int = -1
    nickname: str = ""
    humidity: int = 0
    temperature: float = 0.0
    user_id: int = -1

    def set_nickname(self, name: str) -> None:
        if not name:
            raise DomainError("nickname must not be empty")
        self.nickname = name

    def set_user_id(self, user_id: int) -> None:
        if user_id < 0:
            raise DomainError("user id must not be negative")
        self.user_id = user_id

    def to_json(self) -> dict[str, Any]:
        return {
            "plantId": self.plant_id,
            "nickname": self.nickname,
            "humidity": self.humidity,
            "temperature": self.temperature,
            "userId": self.user_id,
        }

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> Plant:
        return cls(
            plant_id=_as_int(data.get("plantId")),
            nickname=_as_str(data.get("nickname")),
            humidity=_as_int(data.get("humidity")),
            temperature=_as_float(data.get("temperature")),
            user_id=_as_int(data.get("userId")),
        )


@dataclass
class Post:
    """A gallery post, optionally carrying a base64 image."""

    title: str = ""
    content: str = ""
    user_id: int = -1
    post_id: int = -1
    user_name: str = ""
    image_base64: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def set_title(self, title: str) -> None:
        if not title:
            raise DomainError("title must not be empty")
        self.title = title
        self.updated_at = datetime.now()

    def set_content(self, content: str) -> None:
        if not content:
            raise DomainError("content must not be empty")
        self.content = content
        self.updated_at = datetime.now()

    def set_user_id(self, user_id: int) -> None:
        if user_id < 0:
            raise DomainError("user id must not be negative")
        self.user_id = user_id

    def update_content(self, title: str, content: str) -> None:
        if not title or not content:
            raise DomainError("title and content must not be empty")
        self.title = title
        self.content = content
        self.updated_at = datetime.now()

    def to_json(self) -> dict[str, Any]:
        return {
            "postId": self.post_id,
            "title": self.title,
            "content": self.content,
            "userId": self.user_id,
            "userName": self.user_name,
            "createdAt": _format_iso(self.created_at),
            "updatedAt": _format_iso(self.updated_at),
            "imageBase64": self.image_base64,
        }

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> Post:
        created = _as_str(data.get("createdAt"))
        updated = _as_str(data.get("updatedAt"))
        return cls(
            post_id=_as_int(data.get("postId")),
            title=_as_str(data.get("title")),
            content=_as_str(data.get("content")),
            user_id=_as_int(data.get("userId")),
            user_name=_as_str(data.get("userName")),
            image_base64=_as_str(data["imageBase64"]) if "imageBase64" in data else "",
            created_at=_parse_iso(created) if created else datetime.now(),
            updated_at=_parse_iso(updated) if updated else datetime.now(),
        )


@dataclass
class User:
    """A registered user; the connection flag is not serialised."""

    str_id: str = ""
    password: str = ""
    name: str = ""
    email: str = ""
    address: str = ""
    level: PermissionLevel = PermissionLevel.UNKNOWN
    connected: bool = False
    user_id: int = -1

    def connect(self) -> None:
        self.connected = True

    def disconnect(self) -> None:
        self.connected = False

    def verify_str_id(self, str_id: str) -> bool:
        return self.str_id == str_id

    def verify_password(self, password: str) -> bool:
        return self.password == password

    def verify_level(self, level: PermissionLevel) -> bool:
        return self.level == level

    def to_json(self) -> dict[str, Any]:
        return {
            "userId": self.user_id,
            "strId": self.str_id,
            "password": self.password,
            "name": self.name,
            "email": self.email,
            "address": self.address,
            "level": int(self.level),
        }

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> User:
        try:
            level = PermissionLevel(_as_int(data.get("level")))
        except ValueError:
            level = PermissionLevel.UNKNOWN
        return cls(
            user_id=_as_int(data.get("userId")),
            str_id=_as_str(data.get("strId")),
            password=_as_str(data.get("password")),
            name=_as_str(data.get("name")),
            email=_as_str(data.get("email")),
            address=_as_str(data.get("address")),
            level=level,
        )