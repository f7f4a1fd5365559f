# ============================================================
# ENS mainnet contracts
# Addresses and the slices of each ABI the owner lookup calls
# ============================================================

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

REGISTRY_ADDRESS = "0x00000000000C2E074eC69A0dFb2997BA6C7d2e1e"
NAME_WRAPPER_ADDRESS = "0xD4416b13d2b3a9aBae7AcD5D6C2BbDBE25686401"
BASE_REGISTRAR_ADDRESS = "0x57f1887a8BF19b14fC0dF6Fd9B2acc9Af147eA85"

# Public hosted ENS subgraph
SUBGRAPH_URL = "https://api.thegraph.com/subgraphs/name/ensdomains/ens"

REGISTRY_ABI = [
    {
        "name": "owner",
        "type": "function",
        "stateMutability": "view",
        "inputs": [{"name": "node", "type": "bytes32"}],
        "outputs": [{"name": "", "type": "address"}],
    },
]

NAME_WRAPPER_ABI = [
    {
        "name": "getData",
        "type": "function",
        "stateMutability": "view",
        "inputs": [{"name": "id", "type": "uint256"}],
        "outputs": [
            {"name": "owner", "type": "address"},
            {"name": "fuses", "type": "uint32"},
            {"name": "expiry", "type": "uint64"},
        ],
    },
]

BASE_REGISTRAR_ABI = [
    {
        "name": "ownerOf",
        "type": "function",
        "stateMutability": "view",
        "inputs": [{"name": "tokenId", "type": "uint256"}],
        "outputs": [{"name": "", "type": "address"}],
    },
    {
        "name": "nameExpires",
        "type": "function",
        "stateMutability": "view",
        "inputs": [{"name": "id", "type": "uint256"}],
        "outputs": [{"name": "", "type": "uint256"}],
    },
]


def is_zero_address(addr):
    return not addr or addr.lower() == ZERO_ADDRESS
