"""
ENS owner resolution.

Reads the registry, NameWrapper and .eth registrar at one pinned block, works
out who controls a name, and (optionally) checks the answer against the ENS
subgraph. Disagreements with the subgraph are raised as classified errors that
carry the on-chain answer, so callers can tell "index is behind" apart from
"something is actually wrong".
"""
import dataclasses
import logging
from concurrent.futures import ThreadPoolExecutor, wait

from chain_readers import ChainReader, build_web3
from config import load_settings
from debug_injection import DEBUG_SWITCH, NoErrorInjection
from ens_contracts import ZERO_ADDRESS, is_zero_address
from errors import (
    ClassifiedError,
    IndexTransportError,
    ResolutionCancelled,
    SubgraphIndexingError,
    UnknownError,
    classified_error,
)
from expiry import REGISTRAR_GRACE_PERIOD, WRAPPER_GRACE_PERIOD, is_expired
from name_shape import classify_name, get_label_hash, get_name_hash, token_id
from owner_types import NameWrapperOwner, OwnershipLevel, RegistrarOwner, RegistryOwner
from subgraph import SubgraphClient

logger = logging.getLogger(__name__)

CONTRACTS = {level.value: level for level in OwnershipLevel}

GRACE_PERIODS = {
    OwnershipLevel.REGISTRAR: REGISTRAR_GRACE_PERIOD,
    OwnershipLevel.NAME_WRAPPER: WRAPPER_GRACE_PERIOD,
    OwnershipLevel.REGISTRY: 0,
}


def same_address(a, b):
    return (a or "").lower() == (b or "").lower()


# ============================================================
# On-chain view
# ============================================================
def top_level_owner(registry_owner, wrapper, registrar, reference_timestamp, wrapper_address):
    """Merge the three layer reads for a .eth 2LD into one Owner (or None)."""
    if same_address(registry_owner, wrapper_address):
        return NameWrapperOwner(
            owner=wrapper.token_owner,
            expired=is_expired(wrapper.expiry, reference_timestamp, WRAPPER_GRACE_PERIOD),
        )
    if registrar.expiry:
        return RegistrarOwner(
            owner=registry_owner,
            registrant=registrar.registrant,
            expired=is_expired(registrar.expiry, reference_timestamp, REGISTRAR_GRACE_PERIOD),
        )
    if is_zero_address(registry_owner):
        return None
    return RegistryOwner(owner=registry_owner)


def supplement(owner, indexed):
    """Fill a registrar registrant the chain could not give us from the index, as-is."""
    if not isinstance(owner, RegistrarOwner) or owner.registrant is not None:
        return owner
    if indexed is None or indexed.ownership_level != OwnershipLevel.REGISTRAR or not indexed.registrant:
        return owner
    return dataclasses.replace(owner, registrant=indexed.registrant)


# ============================================================
# Reconciliation
# ============================================================
def _raise(error_cls, message, data, timestamp):
    logger.warning(message, extra={"event": "owner_classified_error", "data": {"kind": error_cls.kind.value}})
    raise error_cls(message, data=data, timestamp=timestamp)


def reconcile(chain_owner, indexed, reference_timestamp):
    """
    Compare the on-chain owner with the subgraph's record.
    The chain always wins; the index only adds a registrant or raises.
    """
    data = supplement(chain_owner, indexed)
    if chain_owner is None and indexed is None:
        return None
    if chain_owner is None or indexed is None:
        _raise(SubgraphIndexingError, "Subgraph and chain disagree on whether the name exists", data, reference_timestamp)
    if indexed.ownership_level != chain_owner.ownership_level:
        _raise(
            UnknownError,
            f"Subgraph reports {indexed.ownership_level.value} ownership, chain reports {chain_owner.ownership_level.value}",
            data,
            reference_timestamp,
        )
    chain_expired = getattr(chain_owner, "expired", None)
    index_expired = is_expired(indexed.expiry_date, reference_timestamp, GRACE_PERIODS[indexed.ownership_level])
    if chain_expired != index_expired:
        _raise(SubgraphIndexingError, "Subgraph expiry state is behind the chain", data, reference_timestamp)
    # expired wrapped names lose their holder on-chain but keep it in the index
    if not chain_expired and not same_address(chain_owner.owner, indexed.owner):
        _raise(UnknownError, "Subgraph owner does not match the chain", data, reference_timestamp)
    return data


# ============================================================
# Resolver
# ============================================================
class OwnerResolver:
    def __init__(self, chain, index=None, error_injection=None, poll_interval=0.1):
        self.chain = chain
        self.index = index
        self.error_injection = error_injection or NoErrorInjection()
        self.poll_interval = poll_interval

    def _check_cancel(self, cancel, pending=()):
        if cancel is not None and cancel.is_set():
            for future in pending:
                future.cancel()
            raise ResolutionCancelled("Owner lookup cancelled")

    def _gather(self, futures, cancel):
        pending = set(futures)
        while pending:
            self._check_cancel(cancel, pending)
            _done, pending = wait(pending, timeout=self.poll_interval)
        self._check_cancel(cancel)

    def resolve_owner(self, name, skip_index=True, contract=None, cancel=None):
        """
        Return the Owner of `name`, or None when no layer has a record.

        skip_index: trust the chain alone (default). With False, .eth 2LDs are
            cross-checked against the subgraph and may raise a ClassifiedError.
        contract: read a single layer ("registry", "nameWrapper", "registrar").
        cancel: optional threading.Event; once set the lookup raises ResolutionCancelled.
        """
        if not name:
            raise ValueError("Name must not be empty")
        shape = classify_name(name)
        level = None
        if contract is not None:
            if contract not in CONTRACTS:
                raise ValueError(f"Unknown contract {contract!r}")
            level = CONTRACTS[contract]
            if level == OwnershipLevel.REGISTRAR and not shape.is_top_level_registrable:
                raise ValueError("Registrar ownership only exists for .eth second-level names")
        cross_check = level is None and not skip_index and shape.is_top_level_registrable
        if cross_check and self.index is None:
            raise ValueError("Index cross-check requested but no subgraph client is configured")

        forced = self.error_injection.forced_error()
        node = get_name_hash(name)
        self._check_cancel(cancel)
        block = self.chain.read_block()
        logger.info("Resolving owner", extra={"event": "owner_resolve", "data": {"name": name, "block": block.number}})

        if level is not None:
            return self._resolve_layer(shape, node, block, level)
        if not shape.is_top_level_registrable:
            return self._resolve_generic(node, block, cancel)

        pool = ThreadPoolExecutor(max_workers=4)
        try:
            registry = pool.submit(self.chain.registry_owner, node, block)
            wrapper = pool.submit(self.chain.wrapper_record, token_id(node), block)
            registrar = pool.submit(self.chain.registrar_record, token_id(get_label_hash(shape.leaf_label)), block)
            futures = [registry, wrapper, registrar]
            index = None
            if cross_check:
                index = pool.submit(self.index.fetch_owner, node)
                futures.append(index)
            self._gather(futures, cancel)
        finally:
            pool.shutdown(wait=False, cancel_futures=True)

        chain_owner = top_level_owner(
            registry.result(), wrapper.result(), registrar.result(), block.timestamp, self.chain.wrapper_address
        )
        if not cross_check:
            return chain_owner

        try:
            indexed = index.result()
        except IndexTransportError as err:
            logger.warning("Subgraph unavailable", extra={"event": "owner_classified_error", "data": {"kind": UnknownError.kind.value}})
            raise UnknownError(f"Subgraph lookup failed: {err}", data=chain_owner, timestamp=block.timestamp) from err

        if forced is not None:
            logger.warning("Raising %s from debug switch", forced.value, extra={"event": "owner_forced_error"})
            raise classified_error(
                forced, f"{forced.value} forced by debug switch", data=supplement(chain_owner, indexed), timestamp=block.timestamp
            )
        return reconcile(chain_owner, indexed, block.timestamp)

    def _resolve_generic(self, node, block, cancel):
        registry_owner = self.chain.registry_owner(node, block)
        if is_zero_address(registry_owner):
            return None
        if not same_address(registry_owner, self.chain.wrapper_address):
            return RegistryOwner(owner=registry_owner)
        self._check_cancel(cancel)
        wrapper = self.chain.wrapper_record(token_id(node), block)
        return NameWrapperOwner(owner=wrapper.token_owner)

    def _resolve_layer(self, shape, node, block, level):
        if level == OwnershipLevel.REGISTRY:
            owner = self.chain.registry_owner(node, block)
            return None if is_zero_address(owner) else RegistryOwner(owner=owner)

        if level == OwnershipLevel.NAME_WRAPPER:
            wrapper = self.chain.wrapper_record(token_id(node), block)
            if is_zero_address(wrapper.token_owner) and not wrapper.expiry:
                return None
            expired = None
            if shape.is_top_level_registrable:
                expired = is_expired(wrapper.expiry, block.timestamp, WRAPPER_GRACE_PERIOD)
            return NameWrapperOwner(owner=wrapper.token_owner, expired=expired)

        registrar = self.chain.registrar_record(token_id(get_label_hash(shape.leaf_label)), block)
        if not registrar.expiry:
            return None
        return RegistrarOwner(
            owner=registrar.registrant or ZERO_ADDRESS,
            registrant=registrar.registrant,
            expired=is_expired(registrar.expiry, block.timestamp, REGISTRAR_GRACE_PERIOD),
        )

    def resolve_many(self, names, skip_index=True, cancel=None):
        """
        Resolve each name on its own. Classified errors are reported per row
        with their trusted data; infrastructure errors propagate.
        """
        rows = []
        for name in names:
            try:
                rows.append((name, self.resolve_owner(name, skip_index=skip_index, cancel=cancel), None))
            except ClassifiedError as err:
                rows.append((name, err.data, err))
        return rows


def build_resolver(settings=None, error_injection=None):
    settings = settings or load_settings()
    DEBUG_SWITCH.seed(settings.debug_error)
    w3 = build_web3(settings.rpc_url, settings.request_timeout)
    chain = ChainReader(w3, settings.registry_address, settings.name_wrapper_address, settings.base_registrar_address)
    index = SubgraphClient(settings.subgraph_url, settings.request_timeout)
    return OwnerResolver(chain, index, error_injection=error_injection or DEBUG_SWITCH)


def resolve_owner(name, skip_index=True, contract=None, settings=None):
    """One-off lookup with a resolver built from the environment."""
    return build_resolver(settings).resolve_owner(name, skip_index=skip_index, contract=contract)
