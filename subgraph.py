import logging
from dataclasses import dataclass
from typing import Optional

import requests

from errors import IndexTransportError
from owner_types import OwnershipLevel

logger = logging.getLogger(__name__)

GET_OWNER_QUERY = """
query getOwner($id: String!) {
  domain(id: $id) {
    owner { id }
    registration {
      registrant { id }
      expiryDate
    }
    wrappedDomain {
      owner { id }
      expiryDate
    }
  }
}
"""


@dataclass(frozen=True)
class IndexedOwner:
    """Ownership as the subgraph recorded it. Addresses come back lower-cased."""

    ownership_level: OwnershipLevel
    owner: str
    registrant: Optional[str] = None
    expiry_date: Optional[int] = None


def _account(entity):
    if not entity:
        return None
    return entity.get("id")


def parse_domain(domain) -> Optional[IndexedOwner]:
    if not domain:
        return None
    wrapped = domain.get("wrappedDomain")
    if wrapped:
        return IndexedOwner(
            ownership_level=OwnershipLevel.NAME_WRAPPER,
            owner=_account(wrapped.get("owner")),
            expiry_date=int(wrapped.get("expiryDate") or 0),
        )
    registration = domain.get("registration")
    if registration:
        return IndexedOwner(
            ownership_level=OwnershipLevel.REGISTRAR,
            owner=_account(domain.get("owner")),
            registrant=_account(registration.get("registrant")),
            expiry_date=int(registration.get("expiryDate") or 0),
        )
    return IndexedOwner(ownership_level=OwnershipLevel.REGISTRY, owner=_account(domain.get("owner")))


class SubgraphClient:
    """Single-shot GraphQL lookups against the ENS subgraph. No retries."""

    def __init__(self, url, timeout=10):
        self.url = url
        self.timeout = timeout

    def post_json(self, query, variables):
        try:
            res = requests.post(self.url, json={"query": query, "variables": variables}, timeout=self.timeout)
        except requests.RequestException as err:
            logger.error("Subgraph request failed", extra={"event": "subgraph_failed"})
            raise IndexTransportError(f"Subgraph request failed: {err}") from err
        if res.status_code != 200:
            raise IndexTransportError(f"Subgraph returned HTTP {res.status_code}")
        try:
            body = res.json()
        except ValueError as err:
            raise IndexTransportError("Subgraph returned a non-JSON body") from err
        if not isinstance(body, dict):
            raise IndexTransportError(f"Unexpected subgraph response: {body!r}")
        if body.get("errors"):
            raise IndexTransportError(f"Subgraph query errors: {body['errors']}")
        return body.get("data") or {}

    def fetch_owner(self, node: bytes) -> Optional[IndexedOwner]:
        """Look up one domain by namehash; None when the subgraph has no record."""
        data = self.post_json(GET_OWNER_QUERY, {"id": "0x" + node.hex()})
        try:
            indexed = parse_domain(data.get("domain"))
        except (AttributeError, TypeError, ValueError) as err:
            raise IndexTransportError(f"Malformed subgraph domain: {data!r}") from err
        logger.debug("Subgraph owner fetched", extra={"event": "subgraph_owner", "data": {"found": indexed is not None}})
        return indexed
