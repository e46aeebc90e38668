import logging
import threading
from fastapi import FastAPI, HTTPException
import uvicorn
from typing import List, Dict

from cart_repo import CartridgeRepository
from cart_reset import clean_cart_repo, load_reset_config

app = FastAPI()
cart_repo = CartridgeRepository()
# sync endpoints run in the threadpool; a reset must not interleave with a read
repo_lock = threading.Lock()


def identity_to_dict(identity) -> Dict[str, str]:
    return {"name": identity.name, "version": identity.version, "release": identity.release}


# --- API Endpoints ---
@app.get("/cartridges")
def get_cartridges() -> List[Dict[str, str]]:
    """
    Lists every cartridge variant in the repository index.
    """
    with repo_lock:
        identities = cart_repo.identities()
    return [identity_to_dict(i) for i in identities]


@app.get("/cartridges/{name}")
def get_cartridge_versions(name: str) -> List[Dict[str, str]]:
    """
    Lists the installed variants of one cartridge.

    Raises:
    - HTTPException 404 when no variant of `name` is installed.
    """
    with repo_lock:
        versions = cart_repo.versions(name)
    if not versions:
        raise HTTPException(status_code=404, detail=f"Cartridge {name} not found")
    return [identity_to_dict(i) for i in versions]


@app.post("/reset")
def reset_cartridges() -> Dict[str, List[Dict[str, str]]]:
    """
    Resets the repository to its baseline and reports what was erased.
    """
    with repo_lock:
        erased = clean_cart_repo(cart_repo, load_reset_config())
    return {"erased": [identity_to_dict(i) for i in erased]}


# --- Main Execution ---
def main_entry():
    """
    Loads the repository index and serves the API. Resetting is left to
    POST /reset.
    """
    logging.basicConfig(level=logging.INFO)
    with repo_lock:
        cart_repo.load()
    uvicorn.run(app, host="0.0.0.0", port=8000)


if __name__ == "__main__":
    main_entry()
