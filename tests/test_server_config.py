import pytest

from plantservant import server_config
from plantservant.server_config import ServerConfig


@pytest.fixture(autouse=True)
def _fresh_instance():
    ServerConfig.destroy_instance()
    yield
    ServerConfig.destroy_instance()


def test_get_instance_returns_same_object():
    first = ServerConfig.get_instance()
    second = ServerConfig.get_instance()
    assert first is second


def test_destroy_instance_yields_new_object():
    first = ServerConfig.get_instance()
    first.user_file_path = "changed"
    ServerConfig.destroy_instance()
    second = ServerConfig.get_instance()
    assert second is not first
    assert second.user_file_path == "./../../data/user_data.json"


def test_data_paths_live_in_data_directory():
    config = ServerConfig.get_instance()
    paths = [
        config.user_file_path,
        config.plant_file_path,
        config.post_file_path,
        config.chat_file_path,
        config.chat_room_file_path,
    ]
    assert all(p.startswith(server_config.DATA_FILE_PATH) for p in paths)
    assert all(p.endswith(server_config.JSON_FILE_EXTENSION) for p in paths)
    assert len(set(paths)) == len(paths)


def test_named_paths():
    config = ServerConfig.get_instance()
    assert config.chat_file_path == "./../../data/chatUnit_data.json"
    assert config.log_file_path == "./../../log/log_data.json"