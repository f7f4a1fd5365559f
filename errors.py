from enum import Enum


class ErrorKind(str, Enum):
    SUBGRAPH_INDEXING = "SubgraphIndexingError"
    UNKNOWN = "UnknownError"

    @classmethod
    def from_name(cls, value):
        for kind in cls:
            if kind.value == value:
                return kind
        choices = ", ".join(k.value for k in cls)
        raise ValueError(f"Unknown error kind {value!r} (expected one of: {choices})")


class OwnerLookupError(Exception):
    pass


class InfrastructureError(OwnerLookupError):
    """Transport failure, malformed response or cancellation. Fatal to the lookup."""


class ResolutionCancelled(InfrastructureError):
    pass


class IndexTransportError(InfrastructureError):
    pass


class ClassifiedError(OwnerLookupError):
    """
    Raised when the chain and the index cannot be reconciled.
    `data` is the best answer known at the time (on-chain owner), `timestamp`
    the block timestamp the lookup judged expiry against.
    """

    kind = None

    def __init__(self, message, data=None, timestamp=None):
        super().__init__(message)
        self._data = data
        self._timestamp = timestamp

    @property
    def name(self):
        return self.kind.value

    @property
    def data(self):
        return self._data

    @property
    def timestamp(self):
        return self._timestamp

    def __repr__(self):
        return f"{self.name}({str(self)!r}, data={self._data!r}, timestamp={self._timestamp!r})"


class SubgraphIndexingError(ClassifiedError):
    """The index has not caught up with the chain yet. Retry later or trust `data`."""

    kind = ErrorKind.SUBGRAPH_INDEXING


class UnknownError(ClassifiedError):
    """The index disagrees with the chain in a way lag does not explain."""

    kind = ErrorKind.UNKNOWN


ERROR_CLASSES = {
    ErrorKind.SUBGRAPH_INDEXING: SubgraphIndexingError,
    ErrorKind.UNKNOWN: UnknownError,
}


def classified_error(kind, message, data=None, timestamp=None):
    return ERROR_CLASSES[ErrorKind(kind)](message, data=data, timestamp=timestamp)
