from unittest.mock import MagicMock

import pytest
import requests
from web3.exceptions import ContractLogicError

from chain_readers import BlockRef, ChainReader, build_web3
from ens_contracts import BASE_REGISTRAR_ADDRESS, NAME_WRAPPER_ADDRESS, REGISTRY_ADDRESS, ZERO_ADDRESS
from errors import InfrastructureError
from name_shape import get_name_hash, token_id

ACCOUNT = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"
BLOCK = BlockRef(number=16190000, timestamp=1671169189)


@pytest.fixture
def reader():
    w3 = MagicMock()
    w3.eth.contract.side_effect = lambda address, abi: MagicMock(address=address)
    return ChainReader(w3, REGISTRY_ADDRESS, NAME_WRAPPER_ADDRESS, BASE_REGISTRAR_ADDRESS)


def test_contracts_bound_to_addresses(reader):
    assert reader.registry.address.lower() == REGISTRY_ADDRESS.lower()
    assert reader.name_wrapper.address.lower() == NAME_WRAPPER_ADDRESS.lower()
    assert reader.base_registrar.address.lower() == BASE_REGISTRAR_ADDRESS.lower()
    assert reader.wrapper_address == reader.name_wrapper.address


def test_read_block(reader):
    reader.w3.eth.get_block.return_value = {"number": 16190000, "timestamp": 1671169189}
    assert reader.read_block() == BLOCK
    reader.w3.eth.get_block.assert_called_once_with("latest")


def test_read_block_failure(reader):
    reader.w3.eth.get_block.side_effect = requests.ConnectionError("down")
    with pytest.raises(InfrastructureError):
        reader.read_block()


def test_registry_owner_pinned_to_block(reader):
    node = get_name_hash("test123.eth")
    call = reader.registry.functions.owner.return_value.call
    call.return_value = ACCOUNT
    assert reader.registry_owner(node, BLOCK) == ACCOUNT
    reader.registry.functions.owner.assert_called_once_with(node)
    call.assert_called_once_with(block_identifier=16190000)


def test_registry_owner_network_error(reader):
    reader.registry.functions.owner.return_value.call.side_effect = requests.ConnectionError("reset")
    with pytest.raises(InfrastructureError) as exc:
        reader.registry_owner(get_name_hash("test123.eth"), BLOCK)
    assert isinstance(exc.value.__cause__, requests.ConnectionError)


def test_wrapper_record(reader):
    reader.name_wrapper.functions.getData.return_value.call.return_value = [ACCOUNT, 196608, 1702705189]
    record = reader.wrapper_record(token_id(get_name_hash("wrapped.eth")), BLOCK)
    assert record.token_owner == ACCOUNT
    assert record.expiry == 1702705189


def test_wrapper_record_malformed(reader):
    reader.name_wrapper.functions.getData.return_value.call.return_value = None
    with pytest.raises(InfrastructureError):
        reader.wrapper_record(1, BLOCK)


def test_registrar_record(reader):
    fns = reader.base_registrar.functions
    fns.nameExpires.return_value.call.return_value = 1702705189
    fns.ownerOf.return_value.call.return_value = ACCOUNT
    record = reader.registrar_record(1, BLOCK)
    assert record.registrant == ACCOUNT
    assert record.expiry == 1702705189


def test_registrar_record_reverted_owner(reader):
    fns = reader.base_registrar.functions
    fns.nameExpires.return_value.call.return_value = 1600000000
    fns.ownerOf.return_value.call.side_effect = ContractLogicError("execution reverted")
    record = reader.registrar_record(1, BLOCK)
    assert record.registrant is None
    assert record.expiry == 1600000000


def test_registrar_record_unregistered(reader):
    fns = reader.base_registrar.functions
    fns.nameExpires.return_value.call.return_value = 0
    record = reader.registrar_record(1, BLOCK)
    assert record.registrant is None and record.expiry == 0
    fns.ownerOf.assert_not_called()


def test_registry_revert_is_infrastructure(reader):
    reader.registry.functions.owner.return_value.call.side_effect = ContractLogicError("execution reverted")
    with pytest.raises(InfrastructureError):
        reader.registry_owner(bytes(32), BLOCK)


def test_zero_owner_passthrough(reader):
    reader.registry.functions.owner.return_value.call.return_value = ZERO_ADDRESS
    assert reader.registry_owner(bytes(32), BLOCK) == ZERO_ADDRESS


def test_build_web3_requires_url():
    with pytest.raises(ValueError):
        build_web3(None)
