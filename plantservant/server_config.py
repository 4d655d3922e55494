"""Process-wide server settings: where data and log files live."""

from __future__ import annotations

from typing import ClassVar

DATA_FILE_PATH = "./../../data/"
LOG_FILE_PATH = "./../../log/"

USER_FILE_NAME = "user_data"
PLANT_FILE_NAME = "plant_data"
POST_FILE_NAME = "post_data"
CHAT_FILE_NAME = "chatUnit_data"
CHATROOM_FILE_NAME = "chatRoom_data"
JSON_FILE_EXTENSION = ".json"

LOG_FILE_NAME = "log_data"
LOG_FILE_EXTENSION = ".log"


class ServerConfig:
    """File locations used by the server; one shared instance per process."""

    _instance: ClassVar[ServerConfig | None] = None

    def __init__(self) -> None:
        self.user_file_path = DATA_FILE_PATH + USER_FILE_NAME + JSON_FILE_EXTENSION
        self.plant_file_path = DATA_FILE_PATH + PLANT_FILE_NAME + JSON_FILE_EXTENSION
        self.post_file_path = DATA_FILE_PATH + POST_FILE_NAME + JSON_FILE_EXTENSION
        self.chat_file_path = DATA_FILE_PATH + CHAT_FILE_NAME + JSON_FILE_EXTENSION
        self.chat_room_file_path = DATA_FILE_PATH + CHATROOM_FILE_NAME + JSON_FILE_EXTENSION
        # The log file keeps the JSON extension, as the server has always written it.
        self.log_file_path = LOG_FILE_PATH + LOG_FILE_NAME + JSON_FILE_EXTENSION

    @classmethod
    def get_instance(cls) -> ServerConfig:
        """Return the shared instance, creating it on first use."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def destroy_instance(cls) -> None:
        """Drop the shared instance; the next get_instance() builds a fresh one."""
        cls._instance = None