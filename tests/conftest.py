# conftest.py
import pytest

from cart_repo import CartridgeRepository
from cart_reset import ResetConfig
from cart_helpers import MOCK, MOCK_PLUGIN


@pytest.fixture
def repo_path(tmp_path):
    path = tmp_path / "cartridge_repository"
    path.mkdir()
    return str(path)


@pytest.fixture
def cartridges_root(tmp_path):
    path = tmp_path / "cartridges"
    path.mkdir()
    return str(path)


@pytest.fixture
def reset_config(cartridges_root):
    return ResetConfig(
        cartridges_root=cartridges_root,
        candidates=[MOCK, MOCK_PLUGIN],
        service="mcollective",
        timeout=1.0,
        poll_interval=0.0,
    )


@pytest.fixture
def loaded_repo(repo_path):
    repo = CartridgeRepository(repo_path)
    repo.load()
    return repo
