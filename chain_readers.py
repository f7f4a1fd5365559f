import logging
from dataclasses import dataclass
from typing import Optional

from requests.exceptions import RequestException
from web3 import Web3
from web3.exceptions import ContractLogicError, Web3Exception

from ens_contracts import BASE_REGISTRAR_ABI, NAME_WRAPPER_ABI, REGISTRY_ABI, ZERO_ADDRESS
from errors import InfrastructureError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BlockRef:
    number: int
    timestamp: int


@dataclass(frozen=True)
class WrapperRecord:
    token_owner: str
    expiry: int


@dataclass(frozen=True)
class RegistrarRecord:
    # None once ownerOf reverts (lease past its expiry)
    registrant: Optional[str]
    expiry: int


def build_web3(rpc_url, timeout=10):
    if not rpc_url:
        raise ValueError("Missing ETH_RPC_URL")
    return Web3(Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": timeout}))


class ChainReader:
    """
    Pure reads against the three ENS contract layers.
    Every read is pinned to the block captured by `read_block`.
    """

    def __init__(self, w3, registry_address, name_wrapper_address, base_registrar_address):
        self.w3 = w3
        self.wrapper_address = Web3.to_checksum_address(name_wrapper_address)
        self.registry = w3.eth.contract(address=Web3.to_checksum_address(registry_address), abi=REGISTRY_ABI)
        self.name_wrapper = w3.eth.contract(address=self.wrapper_address, abi=NAME_WRAPPER_ABI)
        self.base_registrar = w3.eth.contract(
            address=Web3.to_checksum_address(base_registrar_address), abi=BASE_REGISTRAR_ABI
        )

    def read_block(self) -> BlockRef:
        try:
            block = self.w3.eth.get_block("latest")
            ref = BlockRef(number=int(block["number"]), timestamp=int(block["timestamp"]))
        except (RequestException, Web3Exception, ValueError, KeyError, TypeError) as err:
            logger.error("Block read failed", extra={"event": "block_read_failed"})
            raise InfrastructureError(f"Could not read latest block: {err}") from err
        logger.debug("Pinned lookup block", extra={"event": "block_pinned", "data": {"number": ref.number, "timestamp": ref.timestamp}})
        return ref

    def _call(self, fn, block, what, allow_revert=False):
        try:
            return fn.call(block_identifier=block.number)
        except ContractLogicError as err:
            if allow_revert:
                logger.debug("%s reverted", what, extra={"event": "read_reverted"})
                return None
            logger.error("%s reverted", what, extra={"event": "read_failed"})
            raise InfrastructureError(f"{what} reverted: {err}") from err
        except (RequestException, Web3Exception, ValueError) as err:
            logger.error("%s read failed", what, extra={"event": "read_failed"})
            raise InfrastructureError(f"{what} read failed: {err}") from err

    def registry_owner(self, node: bytes, block: BlockRef) -> str:
        owner = self._call(self.registry.functions.owner(node), block, "registry.owner")
        return owner or ZERO_ADDRESS

    def wrapper_record(self, token: int, block: BlockRef) -> WrapperRecord:
        data = self._call(self.name_wrapper.functions.getData(token), block, "nameWrapper.getData")
        try:
            owner, _fuses, expiry = data
        except (TypeError, ValueError) as err:
            raise InfrastructureError(f"Malformed nameWrapper.getData response: {data!r}") from err
        return WrapperRecord(token_owner=owner or ZERO_ADDRESS, expiry=int(expiry))

    def registrar_record(self, token: int, block: BlockRef) -> RegistrarRecord:
        expiry = self._call(self.base_registrar.functions.nameExpires(token), block, "baseRegistrar.nameExpires")
        registrant = None
        if expiry:
            registrant = self._call(
                self.base_registrar.functions.ownerOf(token), block, "baseRegistrar.ownerOf", allow_revert=True
            )
        return RegistrarRecord(registrant=registrant, expiry=int(expiry or 0))
