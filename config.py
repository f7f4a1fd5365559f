# ============================================================
# CONFIG
# Read from the environment, with .env support
# ============================================================
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from ens_contracts import (
    BASE_REGISTRAR_ADDRESS,
    NAME_WRAPPER_ADDRESS,
    REGISTRY_ADDRESS,
    SUBGRAPH_URL,
)
from errors import ErrorKind

DEFAULT_TIMEOUT = 10


@dataclass(frozen=True)
class Settings:
    rpc_url: Optional[str]
    subgraph_url: str = SUBGRAPH_URL
    registry_address: str = REGISTRY_ADDRESS
    name_wrapper_address: str = NAME_WRAPPER_ADDRESS
    base_registrar_address: str = BASE_REGISTRAR_ADDRESS
    request_timeout: float = DEFAULT_TIMEOUT
    debug_error: Optional[ErrorKind] = None


def load_settings(env_file=None) -> Settings:
    load_dotenv(env_file)
    debug = os.getenv("ENS_OWNER_DEBUG")
    timeout = os.getenv("ENS_REQUEST_TIMEOUT")
    try:
        request_timeout = float(timeout) if timeout else DEFAULT_TIMEOUT
    except ValueError as err:
        raise ValueError(f"ENS_REQUEST_TIMEOUT must be a number, got {timeout!r}") from err
    return Settings(
        rpc_url=os.getenv("ETH_RPC_URL"),
        subgraph_url=os.getenv("ENS_SUBGRAPH_URL") or SUBGRAPH_URL,
        registry_address=os.getenv("ENS_REGISTRY_ADDRESS") or REGISTRY_ADDRESS,
        name_wrapper_address=os.getenv("ENS_NAME_WRAPPER_ADDRESS") or NAME_WRAPPER_ADDRESS,
        base_registrar_address=os.getenv("ENS_BASE_REGISTRAR_ADDRESS") or BASE_REGISTRAR_ADDRESS,
        request_timeout=request_timeout,
        debug_error=ErrorKind.from_name(debug) if debug else None,
    )
