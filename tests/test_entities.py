from datetime import datetime

import pytest

from plantservant.entities import ChatRoom, ChatUnit, PermissionLevel, Plant, Post, User
from plantservant.errors import DomainError, ErrorCode


# ChatRoom

def test_chat_room_serialises_chat_ids_as_numbered_keys():
    room = ChatRoom(chat_room_name="lobby", chat_room_id=3)
    room.add_chat_id(7)
    room.add_chat_id(9)
    data = room.to_json()
    assert data["chatIds"] == {"chatId0": 7, "chatId1": 9}
    assert data["chatRoomId"] == 3
    assert data["chatRoomName"] == "lobby"
    assert "userIds" not in data


def test_chat_room_round_trip_drops_user_ids():
    room = ChatRoom("garden", [1, 2], [10, 11, 12], chat_room_id=5)
    restored = ChatRoom.from_json(room.to_json())
    assert restored.chat_room_id == 5
    assert restored.chat_room_name == "garden"
    assert restored.chat_ids == [10, 11, 12]
    assert restored.user_ids == []


def test_chat_room_missing_numbered_key_reads_as_zero():
    restored = ChatRoom.from_json({"chatIds": {"chatId0": 4, "other": 8}})
    assert restored.chat_ids == [4, 0]


# ChatUnit

def test_chat_unit_time_uses_text_date_format():
    unit = ChatUnit(1, 2, datetime(1998, 5, 20, 3, 40, 13), "hello")
    assert unit.to_json()["chatTime"] == "Wed May 20 03:40:13 1998"


def test_chat_unit_round_trip():
    unit = ChatUnit(4, 6, datetime(2023, 12, 1, 18, 5, 0), "hi there")
    assert ChatUnit.from_json(unit.to_json()) == unit


def test_chat_unit_without_time():
    unit = ChatUnit(chat_id=1, user_id=1, chat_str="x")
    assert unit.to_json()["chatTime"] == ""
    assert ChatUnit.from_json({"chatTime": "not a date"}).chat_time is None


# Plant

def test_plant_round_trip():
    plant = Plant(2, "fern", 55, 23.5, 8)
    assert Plant.from_json(plant.to_json()) == plant


def test_plant_integral_float_humidity_becomes_int():
    plant = Plant.from_json({"humidity": 61.0, "temperature": 20})
    assert plant.humidity == 61
    assert plant.temperature == 20.0


def test_plant_rejects_empty_nickname():
    plant = Plant(nickname="fern")
    with pytest.raises(DomainError) as info:
        plant.set_nickname("")
    assert info.value.code is ErrorCode.DOMAIN_UNKNOWN
    assert plant.nickname == "fern"


def test_plant_rejects_negative_user_id():
    plant = Plant()
    plant.set_user_id(4)
    with pytest.raises(DomainError):
        plant.set_user_id(-1)
    assert plant.user_id == 4


# Post

def test_post_dates_use_iso_format():
    moment = datetime(2024, 1, 2, 3, 4, 5)
    post = Post("t", "c", 1, created_at=moment, updated_at=moment)
    data = post.to_json()
    assert data["createdAt"] == "2024-01-02T03:04:05"
    assert data["updatedAt"] == data["createdAt"]


def test_post_round_trip():
    moment = datetime(2022, 6, 7, 8, 9, 10)
    post = Post("title", "body", 3, post_id=11, user_name="kim",
                image_base64="aGk=", created_at=moment, updated_at=moment)
    assert Post.from_json(post.to_json()) == post


def test_post_missing_dates_default_to_now_and_image_empty():
    before = datetime.now()
    post = Post.from_json({"title": "t"})
    after = datetime.now()
    assert before <= post.created_at <= after
    assert before <= post.updated_at <= after
    assert post.image_base64 == ""


def test_post_setters_validate_and_touch_updated_at():
    post = Post()
    with pytest.raises(DomainError):
        post.set_title("")
    with pytest.raises(DomainError):
        post.set_content("")
    assert post.updated_at is None
    post.set_title("new")
    assert post.title == "new"
    assert post.updated_at is not None and post.updated_at <= datetime.now()


def test_post_update_content_requires_both():
    post = Post("a", "b", 1)
    with pytest.raises(DomainError):
        post.update_content("x", "")
    assert (post.title, post.content) == ("a", "b")
    post.update_content("x", "y")
    assert (post.title, post.content) == ("x", "y")


def test_post_rejects_negative_user_id():
    post = Post(user_id=2)
    with pytest.raises(DomainError):
        post.set_user_id(-5)
    assert post.user_id == 2


# User

def _make_user():
    password = "password"
    return User("plantlover", password=password, name="Lee",
                email="lee@example.com", address="Seoul",
                level=PermissionLevel.USER, user_id=12)


def test_user_round_trip_excludes_connection_state():
    user = _make_user()
    user.connect()
    restored = User.from_json(user.to_json())
    assert restored.connected is False
    restored.connect()
    assert restored == user


def test_user_json_level_is_plain_int():
    data = _make_user().to_json()
    assert data["level"] == PermissionLevel.USER.value
    assert type(data["level"]) is int


def test_user_verifications():
    user = _make_user()
    assert user.verify_str_id("plantlover")
    assert not user.verify_str_id("other")
    assert user.verify_password("password")
    assert not user.verify_password("secret")
    assert user.verify_level(PermissionLevel.USER)
    assert not user.verify_level(PermissionLevel.ADMIN)


def test_user_connect_disconnect():
    user = _make_user()
    user.connect()
    assert user.connected
    user.disconnect()
    assert not user.connected


def test_user_unknown_level_falls_back():
    assert User.from_json({"level": 42}).level is PermissionLevel.UNKNOWN