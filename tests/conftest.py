import pytest

from tests.helpers import ScriptedClient, write_test_video


@pytest.fixture
def scripted_client():
    return ScriptedClient()


@pytest.fixture
def test_video(tmp_path):
    return write_test_video(tmp_path / "clip.avi")
