"""
Release conditions for escrowed payments.

Pure functions only: no database access, no clock reads.
The caller captures `now` once and passes it in, so a claim
is judged against a single observed instant.
"""

import enum
import math
from datetime import datetime

from money_buddy.schemas.transaction import (
    GeoFence,
    LocationSignal,
    TimeRestriction,
)

EARTH_RADIUS_KM = 6371.0


class ConditionResult(str, enum.Enum):
    SATISFIED = "SATISFIED"
    PENDING = "PENDING"
    EXPIRED = "EXPIRED"


def haversine_km(
    lat1: float, lon1: float, lat2: float, lon2: float
) -> float:
    """Great-circle distance between two points given in decimal degrees."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    )
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(min(1.0, a)))


def is_inside(fence: GeoFence, location: LocationSignal | None) -> bool:
    """No location signal means the claimant is not known to be inside."""
    if location is None:
        return False
    distance = haversine_km(
        fence.latitude, fence.longitude,
        location.latitude, location.longitude,
    )
    return distance <= fence.radius_km


def evaluate(
    geo_fence: GeoFence | None,
    time_restriction: TimeRestriction | None,
    now: datetime,
    location: LocationSignal | None = None,
) -> ConditionResult:
    """
    Decide whether an escrowed payment can be released.

    Expiry wins over everything else. Otherwise the claimant
    must be inside the fence, if there is one.
    """
    if time_restriction is not None and now > time_restriction.expires_at:
        return ConditionResult.EXPIRED
    if geo_fence is not None and not is_inside(geo_fence, location):
        return ConditionResult.PENDING
    return ConditionResult.SATISFIED
