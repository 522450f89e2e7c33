# lifeline/geo.py
# ------------------------------------------------------------
# Distance helpers.
#
# distance_km       -> Haversine, used for proximity + unit ranking
# degree_distance_km -> flat degree approximation, used by the ticker
#                       for cheap ETA estimates
# ------------------------------------------------------------

import math

EARTH_RADIUS_KM = 6371.0
KM_PER_DEGREE = 111.0


def distance_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Great-circle distance between two points in kilometers.
    """
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)

    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def degree_distance_km(d_lat: float, d_lng: float) -> float:
    return math.sqrt(d_lat * d_lat + d_lng * d_lng) * KM_PER_DEGREE
