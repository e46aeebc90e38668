import logging
import os
import shutil
import enum
import networkx as nx
from typing import List, NamedTuple

repository_path = os.environ.get("CART_REPO_PATH", "/var/lib/openshift/.cartridge_repository")


class NodeType(enum.Enum):
    REPOSITORY = "repository"
    CARTRIDGE = "cartridge"
    VERSION = "version"


class CartridgeIdentity(NamedTuple):
    name: str
    version: str
    release: str


class CartridgeNotFoundError(KeyError):
    pass


def cartridge_node(name: str) -> tuple:
    return (NodeType.CARTRIDGE.value, name)


class CartridgeRepository:
    """
    Filesystem-backed index of installed cartridges.

    Layout on disk is <path>/<name>/<release>/<version>/; every directory at
    that depth is one installed variant. The in-memory index is a DiGraph:
    repository -> cartridge -> version. Version nodes are CartridgeIdentity
    tuples and cartridge nodes are ("cartridge", name), so no two kinds of
    node share a key.
    """

    def __init__(self, path: str = None):
        if path is None:
            path = repository_path
        self.path = path
        self.graph = nx.DiGraph()

    def load(self):
        """
        Walks the repository directory and indexes every installed variant.
        A missing repository directory loads an empty index.
        """
        self.graph.add_node(self.path, node_type=NodeType.REPOSITORY.value)
        if not os.path.isdir(self.path):
            logging.warning(f"Cartridge repository {self.path} does not exist")
            return

        for name in sorted(os.listdir(self.path)):
            name_dir = os.path.join(self.path, name)
            if not os.path.isdir(name_dir):
                continue
            for release in sorted(os.listdir(name_dir)):
                release_dir = os.path.join(name_dir, release)
                if not os.path.isdir(release_dir):
                    continue
                for version in sorted(os.listdir(release_dir)):
                    if os.path.isdir(os.path.join(release_dir, version)):
                        self._add(CartridgeIdentity(name, version, release))

    def clear(self):
        self.graph.clear()

    def _add(self, identity: CartridgeIdentity):
        cart = cartridge_node(identity.name)
        if cart not in self.graph:
            self.graph.add_node(cart, node_type=NodeType.CARTRIDGE.value)
            self.graph.add_edge(self.path, cart, relation="has_cartridge")
        self.graph.add_node(identity, node_type=NodeType.VERSION.value)
        self.graph.add_edge(cart, identity, relation="has_version")

    def exists(self, name: str, version: str, release: str) -> bool:
        return CartridgeIdentity(name, version, release) in self.graph

    def erase(self, name: str, version: str, release: str) -> CartridgeIdentity:
        """
        Removes an installed variant from disk and from the index.

        Empty release and cartridge directories left behind are pruned, and
        the cartridge node goes with its last version.

        Raises:
        - CartridgeNotFoundError if the variant is not indexed.
        """
        identity = CartridgeIdentity(name, version, release)
        if identity not in self.graph:
            raise CartridgeNotFoundError(f"{name}-{version} ({release}) is not in the repository")

        release_dir = os.path.join(self.path, name, release)
        shutil.rmtree(os.path.join(release_dir, version))
        if not os.listdir(release_dir):
            os.rmdir(release_dir)
        name_dir = os.path.join(self.path, name)
        if not os.listdir(name_dir):
            os.rmdir(name_dir)

        self.graph.remove_node(identity)
        cart = cartridge_node(name)
        if not list(self.graph.successors(cart)):
            self.graph.remove_node(cart)
        logging.info(f"Erased cartridge {name}-{version} ({release})")
        return identity

    def versions(self, name: str) -> List[CartridgeIdentity]:
        cart = cartridge_node(name)
        if cart not in self.graph:
            return []
        return sorted(self.graph.successors(cart))

    def identities(self) -> List[CartridgeIdentity]:
        return sorted(
            n for n, d in self.graph.nodes(data=True)
            if d.get("node_type") == NodeType.VERSION.value
        )
