from typing import Iterable, Optional, Tuple

Rational = Tuple[int, int]

# Seconds are stored with 1/10000 arc-second precision (~3 mm)
_SEC_DEN = 10000


def dms_to_decimal(
    dms: Iterable[Tuple[float, float]], ref: Optional[str]
) -> Optional[float]:
    """Convert EXIF DMS to decimal degrees. dms is iterable of rationals (num, den)."""
    try:
        d = [n / d for n, d in dms]  # degrees, minutes, seconds
        deg = d[0] + d[1] / 60 + d[2] / 3600
        if ref in ("S", "W"):
            deg = -deg
        return deg
    except (TypeError, ValueError, ZeroDivisionError, IndexError):
        return None


def decimal_to_dms(value: float) -> Tuple[Rational, Rational, Rational]:
    """Absolute decimal degrees -> EXIF ((deg,1), (min,1), (sec,10000))."""
    total = round(abs(value) * 3600 * _SEC_DEN)
    deg, rem = divmod(total, 3600 * _SEC_DEN)
    minute, sec = divmod(rem, 60 * _SEC_DEN)
    return (int(deg), 1), (int(minute), 1), (int(sec), _SEC_DEN)


def lat_ref(lat: float) -> str:
    return "S" if lat < 0 else "N"


def lon_ref(lon: float) -> str:
    return "W" if lon < 0 else "E"


def altitude_rational(alt: float) -> Tuple[int, Rational]:
    """EXIF altitude is unsigned; ref 1 means below sea level."""
    return (1 if alt < 0 else 0), (int(round(abs(alt) * 100)), 100)


def is_zero_coord(lat: Optional[float], lon: Optional[float]) -> bool:
    """(0,0) is the Takeout placeholder for 'no location'; tiny epsilon for float noise."""
    if lat is None or lon is None:
        return False
    return abs(lat) < 1e-9 and abs(lon) < 1e-9
