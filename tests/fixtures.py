# type: ignore
import pytest

from bemu.common.settings import MachineSettings
from bemu.runtime.vfs import VFS


@pytest.fixture
def lenient():
    yield MachineSettings().update(continue_after_fault=True)


@pytest.fixture
def with_vfs():
    yield VFS()
