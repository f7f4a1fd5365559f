import os
import sys

import pytest

# Add project root to sys.path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from chain_readers import BlockRef, RegistrarRecord, WrapperRecord
from ens_contracts import NAME_WRAPPER_ADDRESS, ZERO_ADDRESS
from errors import IndexTransportError, InfrastructureError
from name_shape import classify_name, get_label_hash, get_name_hash, token_id
from owner_types import OwnershipLevel
from subgraph import IndexedOwner

TIMESTAMP = 1671169189
YEAR = 365 * 24 * 60 * 60
DAY = 24 * 60 * 60

ACCOUNT_1 = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"
ACCOUNT_2 = "0x3C44CdDdB6a900fa2b585dd299e03d12FA4293BC"


class FakeChain:
    """In-memory stand-in for ChainReader; readers must all see the pinned block."""

    wrapper_address = NAME_WRAPPER_ADDRESS

    def __init__(self, timestamp=TIMESTAMP):
        self.block = BlockRef(number=16190000, timestamp=timestamp)
        self.registry = {}
        self.wrapped = {}
        self.leases = {}
        self.calls = []
        self.fail_on = None

    def _record(self, what, block=None):
        self.calls.append(what)
        if block is not None:
            assert block == self.block
        if self.fail_on == what:
            raise InfrastructureError(f"{what} read failed: connection reset")

    def read_block(self):
        self._record("block")
        return self.block

    def registry_owner(self, node, block):
        self._record("registry", block)
        return self.registry.get(node, ZERO_ADDRESS)

    def wrapper_record(self, token, block):
        self._record("wrapper", block)
        return self.wrapped.get(token, WrapperRecord(token_owner=ZERO_ADDRESS, expiry=0))

    def registrar_record(self, token, block):
        self._record("registrar", block)
        return self.leases.get(token, RegistrarRecord(registrant=None, expiry=0))

    # fixture helpers
    def set_owner(self, name, owner):
        self.registry[get_name_hash(name)] = owner

    def wrap(self, name, owner, expiry):
        self.set_owner(name, NAME_WRAPPER_ADDRESS)
        self.wrapped[token_id(get_name_hash(name))] = WrapperRecord(token_owner=owner, expiry=expiry)

    def lease(self, name, registrant, expiry):
        label = classify_name(name).leaf_label
        # ownerOf reverts once the lease has run out
        live = registrant if expiry > self.block.timestamp else None
        self.leases[token_id(get_label_hash(label))] = RegistrarRecord(registrant=live, expiry=expiry)


class FakeIndex:
    def __init__(self):
        self.records = {}
        self.calls = []
        self.fail = False

    def fetch_owner(self, node):
        self.calls.append(node)
        if self.fail:
            raise IndexTransportError("Subgraph returned HTTP 502")
        return self.records.get(node)

    def put(self, name, level, owner, registrant=None, expiry_date=None):
        self.records[get_name_hash(name)] = IndexedOwner(
            ownership_level=level, owner=owner, registrant=registrant, expiry_date=expiry_date
        )


@pytest.fixture
def chain():
    fake = FakeChain()
    ts = fake.block.timestamp

    fake.wrap("wrapped.eth", ACCOUNT_1, ts + YEAR)
    fake.lease("wrapped.eth", NAME_WRAPPER_ADDRESS, ts + YEAR - 90 * DAY)

    # released: the wrapper zeroes the holder once the expiry passes
    fake.wrap("expired-wrapped.eth", ZERO_ADDRESS, ts - 10 * DAY)
    fake.lease("expired-wrapped.eth", NAME_WRAPPER_ADDRESS, ts - 100 * DAY)

    fake.set_owner("test123.eth", ACCOUNT_1)
    fake.lease("test123.eth", ACCOUNT_1, ts + YEAR)

    fake.set_owner("expired.eth", ACCOUNT_1)
    fake.lease("expired.eth", ACCOUNT_1, ts - 100 * DAY)

    fake.set_owner("with-subnames.eth", ACCOUNT_1)
    fake.lease("with-subnames.eth", ACCOUNT_1, ts + YEAR)
    fake.set_owner("test.with-subnames.eth", ACCOUNT_2)

    fake.wrap("test.wrapped-with-subnames.eth", ACCOUNT_2, ts + YEAR)
    fake.wrap("test.expired-wrapped.eth", ACCOUNT_2, ts - 10 * DAY)
    return fake


@pytest.fixture
def index(chain):
    """Subgraph view that is fully caught up with `chain`."""
    fake = FakeIndex()
    ts = chain.block.timestamp
    fake.put("wrapped.eth", OwnershipLevel.NAME_WRAPPER, ACCOUNT_1.lower(), expiry_date=ts + YEAR)
    fake.put("expired-wrapped.eth", OwnershipLevel.NAME_WRAPPER, ACCOUNT_1.lower(), expiry_date=ts - 10 * DAY)
    fake.put(
        "test123.eth", OwnershipLevel.REGISTRAR, ACCOUNT_1.lower(), registrant=ACCOUNT_1.lower(), expiry_date=ts + YEAR
    )
    fake.put(
        "expired.eth",
        OwnershipLevel.REGISTRAR,
        ACCOUNT_1.lower(),
        registrant=ACCOUNT_1.lower(),
        expiry_date=ts - 100 * DAY,
    )
    return fake
