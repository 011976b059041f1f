import pytest

from helpers import FakeClock, build_processor, build_request


@pytest.fixture
def make_request():
    return build_request


@pytest.fixture
def make_processor():
    return build_processor


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
