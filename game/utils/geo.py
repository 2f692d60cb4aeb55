import math

EARTH_RADIUS_M = 6371000.0
KM_PER_DEGREE = 111
# Tolerance for inclusive distance checks, in meters
EPS = 1e-6


def haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in meters between two decimal-degree points."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlambda = math.radians(lon2 - lon1)
    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_M * c


def distance_meters(a, b) -> float:
    """Distance between two Coordinates (x = latitude, y = longitude)."""
    return haversine_m(a.x, a.y, b.x, b.y)


def chunk_size_deg(size_km: float) -> float:
    return size_km / KM_PER_DEGREE


def chunk_for(lat: float, lon: float, size_km: float) -> tuple[int, int, str]:
    """Return (chunk_x, chunk_y, key) for the square chunk holding a point.
    chunk_x indexes latitude, chunk_y longitude.
    """
    deg = chunk_size_deg(size_km)
    cx = math.floor(lat / deg)
    cy = math.floor(lon / deg)
    return cx, cy, chunk_key(cx, cy)


def chunk_key(cx: int, cy: int) -> str:
    return f"{cx}:{cy}"


def chunk_bounds(cx: int, cy: int, size_km: float) -> tuple[float, float, float, float]:
    """Return (min_lat, max_lat, min_lon, max_lon) of a chunk."""
    deg = chunk_size_deg(size_km)
    min_lat = cx * deg
    min_lon = cy * deg
    return min_lat, min_lat + deg, min_lon, min_lon + deg


def chunks_within_radius(cx: int, cy: int, radius: int):
    """Yield (x, y) for every chunk in the square neighborhood of (cx, cy)."""
    for dx in range(-radius, radius + 1):
        for dy in range(-radius, radius + 1):
            yield cx + dx, cy + dy

