"""
Pytest hooks that reset the cartridge repository around scenarios marked
with @pytest.mark.manipulates_cart_repo.

Enable from a conftest.py with:

    pytest_plugins = ["cart_fixtures"]
"""
import pytest

from cart_repo import CartridgeRepository
from cart_reset import clean_cart_repo, load_reset_config

MARKER = "manipulates_cart_repo"


def pytest_configure(config):
    config.addinivalue_line(
        "markers", f"{MARKER}: reset the cartridge repository before and after the test"
    )


@pytest.fixture
def cart_repo():
    """A loaded repository for the configured repository path."""
    repo = CartridgeRepository()
    repo.load()
    return repo


@pytest.fixture
def cart_reset_config():
    return load_reset_config()


@pytest.fixture(autouse=True)
def _clean_cart_repo_around(request):
    if request.node.get_closest_marker(MARKER) is None:
        yield
        return

    repo = request.getfixturevalue("cart_repo")
    config = request.getfixturevalue("cart_reset_config")
    clean_cart_repo(repo, config)
    yield
    clean_cart_repo(repo, config)
