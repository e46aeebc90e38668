import logging
import os
import shutil
import subprocess
import time
from typing import List, NamedTuple, Tuple

from cart_repo import CartridgeIdentity, CartridgeRepository

cartridges_root = "/usr/libexec/openshift/cartridges"
test_cartridges = [
    CartridgeIdentity("mock", "0.1", "0.0.2"),
    CartridgeIdentity("mock-plugin", "0.1", "0.0.2"),
]
restart_service_name = "mcollective"
ready_timeout = 30.0
ready_poll_interval = 0.5


class ResetConfig(NamedTuple):
    cartridges_root: str
    candidates: List[CartridgeIdentity]
    service: str
    timeout: float
    poll_interval: float


def parse_candidates(text: str) -> List[CartridgeIdentity]:
    """
    Parses a comma separated list of name:version:release triples.

    Raises:
    - ValueError if an entry does not have exactly three non-empty fields.
    """
    candidates = []
    for entry in text.split(","):
        entry = entry.strip()
        if not entry:
            continue
        parts = entry.split(":")
        if len(parts) != 3 or not all(parts):
            raise ValueError(f"Invalid cartridge entry '{entry}', expected name:version:release")
        candidates.append(CartridgeIdentity(*parts))
    return candidates


def load_reset_config(environ=None) -> ResetConfig:
    """
    Builds the reset configuration from the module defaults, overridden by
    CARTRIDGES_ROOT, CART_RESET_CANDIDATES, CART_RESET_SERVICE and
    CART_RESET_TIMEOUT when they are set.
    """
    if environ is None:
        environ = os.environ

    candidates = list(test_cartridges)
    if environ.get("CART_RESET_CANDIDATES"):
        candidates = parse_candidates(environ["CART_RESET_CANDIDATES"])

    return ResetConfig(
        cartridges_root=environ.get("CARTRIDGES_ROOT", cartridges_root),
        candidates=candidates,
        service=environ.get("CART_RESET_SERVICE", restart_service_name),
        timeout=float(environ.get("CART_RESET_TIMEOUT", ready_timeout)),
        poll_interval=ready_poll_interval,
    )


def manifest_paths(root: str, name: str) -> Tuple[str, str]:
    """Returns the live manifest path of a cartridge and its backup path."""
    manifest_path = os.path.join(root, name, "metadata", "manifest.yml")
    return manifest_path, manifest_path + "~"


# --- Service Control ---
def restart_service(service: str):
    """
    Restarts a system service and blocks until the restart command returns.
    A non-zero exit raises subprocess.CalledProcessError.
    """
    logging.info(f"Restarting service {service}")
    subprocess.run(["service", service, "restart"],
                   capture_output=True, text=True, check=True)


def service_ready(service: str) -> bool:
    result = subprocess.run(["service", service, "status"],
                            capture_output=True, text=True)
    return result.returncode == 0


def wait_for_service(service: str, timeout: float, poll_interval: float = ready_poll_interval):
    """
    Polls the service status until it reports ready.

    Raises:
    - TimeoutError if the service is not ready within `timeout` seconds.
    """
    deadline = time.monotonic() + timeout
    while not service_ready(service):
        if time.monotonic() >= deadline:
            raise TimeoutError(f"Service {service} not ready after {timeout} seconds")
        time.sleep(poll_interval)
    logging.info(f"Service {service} is ready")


# --- Repository Reset ---
def clean_cart_repo(cart_repo: CartridgeRepository, config: ResetConfig = None) -> List[CartridgeIdentity]:
    """
    Returns the cartridge repository to its baseline state.

    For each candidate installed in the repository: erase it, restore its
    manifest from the backup copy when one exists, and schedule a restart of
    the messaging service. The service is restarted at most once, after which
    the index is cleared and reloaded unconditionally.

    Parameters:
    - cart_repo: Repository to reset.
    - config: Reset configuration; defaults to load_reset_config().

    Returns:
    - The identities that were erased, in candidate order.

    Any filesystem or service error propagates and aborts the reset.
    """
    if config is None:
        config = load_reset_config()

    erased = []
    for cart in config.candidates:
        manifest_path, manifest_backup_path = manifest_paths(config.cartridges_root, cart.name)

        if cart_repo.exists(cart.name, cart.version, cart.release):
            logging.info(f"Erasing test-generated version {cart.name}-{cart.version} ({cart.release})")
            erased.append(cart_repo.erase(cart.name, cart.version, cart.release))

            if os.path.exists(manifest_backup_path):
                logging.info(f"Restoring {cart.name} {manifest_path}")
                shutil.copyfile(manifest_backup_path, manifest_path)

    if erased:
        restart_service(config.service)
        wait_for_service(config.service, config.timeout, config.poll_interval)

    cart_repo.clear()
    cart_repo.load()
    return erased
