"""
Geohash proximity keys and radius range queries.

A geohash interleaves longitude and latitude bisection bits and packs them
five at a time into a base32 string, so points that are close usually share
a prefix. A radius search becomes a few `[start, end]` string ranges over an
ordered index; the ranges over-approximate the circle and callers must
post-filter with `true_distance`.

Keys are not continuous across the antimeridian or near the poles. Points on
the far side of such a seam can fall outside every returned range.
"""

import math
from typing import List, Tuple

BASE32 = "0123456789bcdefghjkmnpqrstuvwxyz"
BITS_PER_CHAR = 5
DEFAULT_PRECISION = 10
MAXIMUM_BITS_PRECISION = 22 * BITS_PER_CHAR

EARTH_RADIUS_KM = 6371.0
EARTH_MERI_CIRCUMFERENCE = 40007860  # meters
METERS_PER_DEGREE_LATITUDE = 110574
EARTH_EQ_RADIUS = 6378137.0  # WGS84 semi-major axis, meters
E2 = 0.00669447819799  # WGS84 eccentricity squared
EPSILON = 1e-12

# Sorts after every base32 character
RANGE_END = "~"

_DECODE_MAP = {char: index for index, char in enumerate(BASE32)}

Point = Tuple[float, float]
Range = Tuple[str, str]


def validate_location(lat: float, lon: float) -> None:
    if not (-90.0 <= lat <= 90.0):
        raise ValueError(f"latitude must be within [-90, 90], got {lat}")
    if not (-180.0 <= lon <= 180.0):
        raise ValueError(f"longitude must be within [-180, 180], got {lon}")


def validate_geohash(key: str) -> None:
    if not key:
        raise ValueError("geohash must not be empty")
    for char in key:
        if char not in _DECODE_MAP:
            raise ValueError(f"invalid geohash character {char!r} in {key!r}")


def encode(lat: float, lon: float, precision: int = DEFAULT_PRECISION) -> str:
    """Encode a coordinate pair as a geohash of `precision` characters."""
    validate_location(lat, lon)
    if precision <= 0 or precision > MAXIMUM_BITS_PRECISION // BITS_PER_CHAR:
        raise ValueError(f"precision must be within [1, 22], got {precision}")

    lat_min, lat_max = -90.0, 90.0
    lon_min, lon_max = -180.0, 180.0
    chars = []
    value = 0
    bits = 0
    even = True

    while len(chars) < precision:
        if even:
            mid = (lon_min + lon_max) / 2
            if lon > mid:
                value = (value << 1) + 1
                lon_min = mid
            else:
                value = value << 1
                lon_max = mid
        else:
            mid = (lat_min + lat_max) / 2
            if lat > mid:
                value = (value << 1) + 1
                lat_min = mid
            else:
                value = value << 1
                lat_max = mid
        even = not even

        if bits < BITS_PER_CHAR - 1:
            bits += 1
        else:
            chars.append(BASE32[value])
            bits = 0
            value = 0

    return "".join(chars)


def decode_bbox(key: str) -> Tuple[float, float, float, float]:
    """Return (lat_min, lat_max, lon_min, lon_max) of the geohash cell."""
    validate_geohash(key)
    lat_min, lat_max = -90.0, 90.0
    lon_min, lon_max = -180.0, 180.0
    even = True

    for char in key:
        value = _DECODE_MAP[char]
        for shift in range(BITS_PER_CHAR - 1, -1, -1):
            bit = (value >> shift) & 1
            if even:
                mid = (lon_min + lon_max) / 2
                if bit:
                    lon_min = mid
                else:
                    lon_max = mid
            else:
                mid = (lat_min + lat_max) / 2
                if bit:
                    lat_min = mid
                else:
                    lat_max = mid
            even = not even

    return lat_min, lat_max, lon_min, lon_max


def decode(key: str) -> Point:
    """Return the centre (lat, lon) of the geohash cell."""
    lat_min, lat_max, lon_min, lon_max = decode_bbox(key)
    return (lat_min + lat_max) / 2, (lon_min + lon_max) / 2


def true_distance(a: Point, b: Point) -> float:
    """Great-circle distance in kilometers (haversine), rounded to 3 decimals."""
    lat1, lon1 = a
    lat2, lon2 = b
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)

    h = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    # Clamp float noise so sqrt(1 - h) stays real
    h = min(1.0, max(0.0, h))
    distance = 2 * EARTH_RADIUS_KM * math.atan2(math.sqrt(h), math.sqrt(1 - h))
    return round(distance, 3)


# Range query geometry


def _meters_to_longitude_degrees(distance: float, latitude: float) -> float:
    radians = math.radians(latitude)
    num = math.cos(radians) * EARTH_EQ_RADIUS * math.pi / 180
    denom = 1 / math.sqrt(1 - E2 * math.sin(radians) ** 2)
    delta_deg = num * denom
    if delta_deg < EPSILON:
        return 360.0 if distance > 0 else 0.0
    return min(360.0, distance / delta_deg)


def _longitude_bits_for_resolution(resolution: float, latitude: float) -> float:
    degs = _meters_to_longitude_degrees(resolution, latitude)
    if abs(degs) > 0.000001:
        return max(1.0, math.log2(360 / degs))
    return 1.0


def _latitude_bits_for_resolution(resolution: float) -> float:
    return min(math.log2(EARTH_MERI_CIRCUMFERENCE / 2 / resolution), MAXIMUM_BITS_PRECISION)


def _wrap_longitude(longitude: float) -> float:
    if -180 <= longitude <= 180:
        return longitude
    adjusted = longitude + 180
    if adjusted > 0:
        return (adjusted % 360) - 180
    return 180 - (-adjusted % 360)


def _bounding_box_bits(center: Point, radius_m: float) -> int:
    lat_delta = radius_m / METERS_PER_DEGREE_LATITUDE
    lat_north = min(90.0, center[0] + lat_delta)
    lat_south = max(-90.0, center[0] - lat_delta)
    bits_lat = math.floor(_latitude_bits_for_resolution(radius_m)) * 2
    bits_lon_north = math.floor(_longitude_bits_for_resolution(radius_m, lat_north)) * 2 - 1
    bits_lon_south = math.floor(_longitude_bits_for_resolution(radius_m, lat_south)) * 2 - 1
    return min(bits_lat, bits_lon_north, bits_lon_south, MAXIMUM_BITS_PRECISION)


def _bounding_box_points(center: Point, radius_m: float) -> List[Point]:
    lat, lon = center
    lat_degrees = radius_m / METERS_PER_DEGREE_LATITUDE
    lat_north = min(90.0, lat + lat_degrees)
    lat_south = max(-90.0, lat - lat_degrees)
    lon_degrees = max(
        _meters_to_longitude_degrees(radius_m, lat_north),
        _meters_to_longitude_degrees(radius_m, lat_south),
    )
    west = _wrap_longitude(lon - lon_degrees)
    east = _wrap_longitude(lon + lon_degrees)
    return [
        (lat, lon),
        (lat, west),
        (lat, east),
        (lat_north, lon),
        (lat_north, west),
        (lat_north, east),
        (lat_south, lon),
        (lat_south, west),
        (lat_south, east),
    ]


def _range_for_prefix(key: str, bits: int) -> Range:
    precision = math.ceil(bits / BITS_PER_CHAR)
    if len(key) < precision:
        return key, key + RANGE_END

    key = key[:precision]
    base = key[:-1]
    last_value = _DECODE_MAP[key[-1]]
    significant_bits = bits - len(base) * BITS_PER_CHAR
    unused_bits = BITS_PER_CHAR - significant_bits
    start_value = (last_value >> unused_bits) << unused_bits
    end_value = start_value + (1 << unused_bits)
    if end_value > len(BASE32) - 1:
        return base + BASE32[start_value], base + RANGE_END
    return base + BASE32[start_value], base + BASE32[end_value]


def query_bounds(center: Point, radius_m: float) -> List[Range]:
    """
    Key ranges whose union contains every point within `radius_m` of `center`.

    Ranges are inclusive on both ends and returned without duplicates, in
    the order of the bounding box points they were derived from.
    """
    validate_location(*center)
    if radius_m <= 0:
        raise ValueError(f"radius must be positive, got {radius_m}")

    query_bits = max(1, _bounding_box_bits(center, radius_m))
    precision = math.ceil(query_bits / BITS_PER_CHAR)

    ranges: List[Range] = []
    for point in _bounding_box_points(center, radius_m):
        bound = _range_for_prefix(encode(point[0], point[1], precision), query_bits)
        if bound not in ranges:
            ranges.append(bound)
    return ranges
