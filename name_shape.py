from dataclasses import dataclass
from typing import Tuple

from web3 import Web3

# Top-level suffix managed by the .eth registrar
MANAGED_SUFFIX = "eth"
LABEL_SEPARATOR = "."


@dataclass(frozen=True)
class NameShape:
    labels: Tuple[str, ...]
    is_top_level_registrable: bool

    @property
    def label_count(self):
        return len(self.labels)

    @property
    def leaf_label(self):
        return self.labels[0] if self.labels else ""


def classify_name(name: str) -> NameShape:
    """Split a dotted name and decide whether it is a 2LD under the managed suffix."""
    labels = tuple(name.split(LABEL_SEPARATOR)) if name else ()
    top_level = len(labels) == 2 and labels[1] == MANAGED_SUFFIX
    return NameShape(labels=labels, is_top_level_registrable=top_level)


def get_label_hash(label: str) -> bytes:
    return bytes(Web3.keccak(text=label))


def get_name_hash(name: str) -> bytes:
    """ENS namehash: fold label hashes from the root down."""
    node = bytes(32)
    if not name:
        return node
    for label in reversed(name.split(LABEL_SEPARATOR)):
        node = bytes(Web3.keccak(node + get_label_hash(label)))
    return node


def token_id(hash_bytes: bytes) -> int:
    """Wrapper and registrar token ids are the hash read as uint256."""
    return int.from_bytes(hash_bytes, "big")
