"""Regional hubs and nearest-hub resolution.

Small towns do not have their own marine buoys, traffic feeds or ski
reports; they borrow them from the closest hub that offers the capability,
as long as they sit within that hub's service radius.
"""

from __future__ import annotations

import math
from typing import Iterable, Optional, Tuple

from tedder.domain import Capability, Coordinate, Hub, HubMatch

EARTH_RADIUS_KM = 6371.0

_TURKISH_FOLD = str.maketrans({"ı": "i", "İ": "i", "ş": "s", "ğ": "g", "ü": "u", "ö": "o", "ç": "c"})


def normalize_city(city: str) -> str:
    """Lower-case and fold Turkish letters to ASCII ("İzmir" -> "izmir")."""
    # fold before lower(): "İ".lower() is "i" plus a combining dot
    return city.strip().translate(_TURKISH_FOLD).lower().translate(_TURKISH_FOLD)


def _hub(hub_id: str, name: str, lat: float, lon: float, capabilities: Iterable[Capability], radius_km: float) -> Hub:
    return Hub(
        id=hub_id,
        name=name,
        coord=Coordinate(lat=lat, lon=lon),
        capabilities=frozenset(capabilities),
        radius_km=radius_km,
    )


REGIONAL_HUBS: Tuple[Hub, ...] = (
    _hub("istanbul", "İstanbul", 41.0082, 28.9784, (Capability.MARINE, Capability.TRAFFIC), 50),
    _hub("antalya", "Antalya", 36.8969, 30.7133, (Capability.MARINE, Capability.TRAFFIC), 80),
    _hub("izmir", "İzmir", 38.4237, 27.1428, (Capability.MARINE, Capability.TRAFFIC), 60),
    _hub("mersin", "Mersin", 36.8121, 34.6415, (Capability.MARINE,), 70),
    _hub("trabzon", "Trabzon", 41.0027, 39.7168, (Capability.MARINE,), 60),
    _hub("samsun", "Samsun", 41.2867, 36.3300, (Capability.MARINE,), 60),
    _hub("bursa", "Bursa", 40.1885, 29.0610, (Capability.SKI, Capability.TRAFFIC), 40),
    _hub("kayseri", "Kayseri", 38.7312, 35.4787, (Capability.SKI,), 30),
    _hub("erzurum", "Erzurum", 39.9055, 41.2658, (Capability.SKI,), 20),
)


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in kilometres."""
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def find_nearest_hub(
    latitude: float,
    longitude: float,
    capability: Capability | str,
    hubs: Iterable[Hub] = REGIONAL_HUBS,
) -> Optional[HubMatch]:
    """Closest hub offering ``capability`` whose radius covers the point, or None.

    Ties keep the hub listed first.
    """
    capability = Capability(capability)
    best: Optional[HubMatch] = None
    for hub in hubs:
        if capability not in hub.capabilities:
            continue
        distance = haversine_distance(latitude, longitude, hub.coord.lat, hub.coord.lon)
        if distance > hub.radius_km:
            continue
        if best is None or distance < best.distance_km:
            best = HubMatch(hub=hub, distance_km=distance)
    return best


def get_hub_by_id(hub_id: str, hubs: Iterable[Hub] = REGIONAL_HUBS) -> Optional[Hub]:
    for hub in hubs:
        if hub.id == hub_id:
            return hub
    return None
