import pytest

from forms2apex.config import GenerationConfig

from tests.fakes import SleepRecorder


@pytest.fixture
def generation_config():
    return GenerationConfig()


@pytest.fixture
def sleep_recorder():
    return SleepRecorder()
