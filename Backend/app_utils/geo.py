import math


def parse_coordinate(coordinate):
    """
    Parse a "lat,lon" string as stored on issues.
    Returns a (latitude, longitude) tuple, or None when it cannot be read.
    """
    if not coordinate:
        return None

    parts = [p.strip() for p in str(coordinate).split(",")]
    if len(parts) < 2:
        return None

    try:
        lat = float(parts[0])
        lon = float(parts[1])
    except ValueError:
        return None

    if math.isnan(lat) or math.isnan(lon):
        return None
    return lat, lon


def calculate_distance(lat1, lon1, lat2, lon2):
    """
    Calculate the great circle distance between two points
    on the earth (specified in decimal degrees)
    Returns distance in meters.
    """
    if lat1 is None or lon1 is None or lat2 is None or lon2 is None:
        return float('inf')

    # Convert decimal degrees to radians
    lat1, lon1, lat2, lon2 = map(math.radians, [lat1, lon1, lat2, lon2])

    # Haversine formula
    dlon = lon2 - lon1
    dlat = lat2 - lat1
    a = math.sin(dlat/2)**2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon/2)**2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    r = 6371000 # Radius of earth in meters
    return c * r


def coordinate_distance(a, b):
    """Distance in meters between two parsed coordinates, inf if either is missing."""
    if not a or not b:
        return float('inf')
    return calculate_distance(a[0], a[1], b[0], b[1])
