from typing import Optional

# .eth leases stay with their registrant for 90 days after expiry
REGISTRAR_GRACE_PERIOD = 90 * 24 * 60 * 60
# NameWrapper expiries for .eth names already include the registrar grace period
WRAPPER_GRACE_PERIOD = 0


def is_expired(expiry: Optional[int], reference_timestamp: int, grace_period: int = 0) -> Optional[bool]:
    """
    Compare a recorded expiry against the block timestamp of the lookup.
    Returns None when there is no expiry to judge (zero or unset).
    """
    if not expiry:
        return None
    return reference_timestamp > int(expiry) + grace_period
