from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union


class OwnershipLevel(str, Enum):
    REGISTRY = "registry"
    REGISTRAR = "registrar"
    NAME_WRAPPER = "nameWrapper"


@dataclass(frozen=True)
class RegistryOwner:
    """Plain registry ownership; no lease, so no expiry."""

    owner: str
    ownership_level: OwnershipLevel = field(default=OwnershipLevel.REGISTRY, init=False)

    def to_dict(self):
        return {"ownershipLevel": self.ownership_level.value, "owner": self.owner}


@dataclass(frozen=True)
class RegistrarOwner:
    """Unwrapped .eth lease. `registrant` keeps the casing of whichever source supplied it."""

    owner: str
    expired: bool
    registrant: Optional[str] = None
    ownership_level: OwnershipLevel = field(default=OwnershipLevel.REGISTRAR, init=False)

    def to_dict(self):
        data = {"ownershipLevel": self.ownership_level.value, "owner": self.owner}
        if self.registrant is not None:
            data["registrant"] = self.registrant
        data["expired"] = self.expired
        return data


@dataclass(frozen=True)
class NameWrapperOwner:
    """Wrapped name; `owner` is the token holder. Subnames carry no `expired`."""

    owner: str
    expired: Optional[bool] = None
    ownership_level: OwnershipLevel = field(default=OwnershipLevel.NAME_WRAPPER, init=False)

    def to_dict(self):
        data = {"ownershipLevel": self.ownership_level.value, "owner": self.owner}
        if self.expired is not None:
            data["expired"] = self.expired
        return data


Owner = Union[RegistryOwner, RegistrarOwner, NameWrapperOwner]
