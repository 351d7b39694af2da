"""
Ellipsoidal and spherical coordinate math.

Plain functions on floats, shared by the Datum class and the projection
adapters. Angles are taken and returned in degrees unless noted, distances
in metres.

Geocentric and Helmert formulas follow Chris Veness' geodesy library
(latlon-ellipsoidal, latlon-ellipsoidal-datum); the UTM conversion uses the
Krüger series to order n^6 as described by Karney (2011).
"""

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .coords import Hemisphere
from .errors import InvalidArgumentError

if TYPE_CHECKING:
    from .reference import Ellipsoid

# WGS84 equatorial radius, used by the spherical Web Mercator projection
EARTH_RADIUS_WGS84 = 6378137.0
EARTH_CIRCUMFERENCE_WGS84 = 2.0 * math.pi * EARTH_RADIUS_WGS84

MIN_LATITUDE_WEB_MERCATOR = -85.05112878
MAX_LATITUDE_WEB_MERCATOR = 85.05112878
MIN_LATITUDE_UTM = -80.0
MAX_LATITUDE_UTM = 84.0

UTM_SCALE_FACTOR = 0.9996
UTM_FALSE_EASTING = 500e3
UTM_FALSE_NORTHING = 10000e3

_ARCSEC_TO_RAD = math.pi / (180.0 * 3600.0)


@dataclass(frozen=True)
class HelmertTransform:
    """
    7-parameter Helmert transform from WGS84 to another datum.

    Attributes:
        tx, ty, tz: Translations in metres
        s: Scale in parts per million
        rx, ry, rz: Rotations in arc-seconds
    """

    tx: float = 0.0
    ty: float = 0.0
    tz: float = 0.0
    s: float = 0.0
    rx: float = 0.0
    ry: float = 0.0
    rz: float = 0.0

    @property
    def is_identity(self) -> bool:
        return not any(
            (self.tx, self.ty, self.tz, self.s, self.rx, self.ry, self.rz)
        )

    def inverse(self) -> "HelmertTransform":
        """Approximate inverse (all parameters negated)"""
        return HelmertTransform(
            -self.tx, -self.ty, -self.tz, -self.s, -self.rx, -self.ry, -self.rz
        )

    def apply(self, x: float, y: float, z: float) -> tuple[float, float, float]:
        """Translate, rotate (small-angle) and scale a geocentric position"""
        s1 = self.s / 1e6 + 1.0
        rx = self.rx * _ARCSEC_TO_RAD
        ry = self.ry * _ARCSEC_TO_RAD
        rz = self.rz * _ARCSEC_TO_RAD
        return (
            self.tx + x * s1 - y * rz + z * ry,
            self.ty + x * rz + y * s1 - z * rx,
            self.tz - x * ry + y * rx + z * s1,
        )


def geographic_to_geocentric(
    lon: float, lat: float, elev: float, ellipsoid: "Ellipsoid"
) -> tuple[float, float, float]:
    """Convert geodetic lon/lat/elevation to earth-centred earth-fixed x/y/z"""
    phi = math.radians(lat)
    lam = math.radians(lon)
    e2 = ellipsoid.e2
    sin_phi = math.sin(phi)
    cos_phi = math.cos(phi)
    nu = ellipsoid.a / math.sqrt(1.0 - e2 * sin_phi * sin_phi)
    return (
        (nu + elev) * cos_phi * math.cos(lam),
        (nu + elev) * cos_phi * math.sin(lam),
        (nu * (1.0 - e2) + elev) * sin_phi,
    )


def geocentric_to_geographic(
    x: float, y: float, z: float, ellipsoid: "Ellipsoid"
) -> tuple[float, float, float]:
    """
    Convert geocentric x/y/z to geodetic lon/lat/elevation.

    Uses Bowring's (1985) formulation, accurate to ~1e-9 degrees for any
    point near the ellipsoid surface.
    """
    a = ellipsoid.a
    b = ellipsoid.b
    e2 = ellipsoid.e2
    eps2 = e2 / (1.0 - e2)
    p = math.hypot(x, y)
    r = math.hypot(p, z)
    if r == 0.0:
        return (0.0, 0.0, -a)

    # parametric latitude
    beta = math.atan2(b * z * (1.0 + eps2 * b / r), a * p)
    sin_beta = math.sin(beta)
    cos_beta = math.cos(beta)

    phi = math.atan2(
        z + eps2 * b * sin_beta**3, p - e2 * a * cos_beta**3
    )
    lam = math.atan2(y, x)

    sin_phi = math.sin(phi)
    cos_phi = math.cos(phi)
    nu = a / math.sqrt(1.0 - e2 * sin_phi * sin_phi)
    h = p * cos_phi + z * sin_phi - (a * a / nu)
    return (math.degrees(lam), math.degrees(phi), h)


# Krüger series coefficients, as polynomials in the third flattening n
def _alpha(n: float) -> tuple[float, ...]:
    n2, n3, n4, n5, n6 = n**2, n**3, n**4, n**5, n**6
    return (
        1 / 2 * n - 2 / 3 * n2 + 5 / 16 * n3 + 41 / 180 * n4
        - 127 / 288 * n5 + 7891 / 37800 * n6,
        13 / 48 * n2 - 3 / 5 * n3 + 557 / 1440 * n4 + 281 / 630 * n5
        - 1983433 / 1935360 * n6,
        61 / 240 * n3 - 103 / 140 * n4 + 15061 / 26880 * n5
        + 167603 / 181440 * n6,
        49561 / 161280 * n4 - 179 / 168 * n5 + 6601661 / 7257600 * n6,
        34729 / 80640 * n5 - 3418889 / 1995840 * n6,
        212378941 / 319334400 * n6,
    )


def _beta(n: float) -> tuple[float, ...]:
    n2, n3, n4, n5, n6 = n**2, n**3, n**4, n**5, n**6
    return (
        1 / 2 * n - 2 / 3 * n2 + 37 / 96 * n3 - 1 / 360 * n4
        - 81 / 512 * n5 + 96199 / 604800 * n6,
        1 / 48 * n2 + 1 / 15 * n3 - 437 / 1440 * n4 + 46 / 105 * n5
        - 1118711 / 3870720 * n6,
        17 / 480 * n3 - 37 / 840 * n4 - 209 / 4480 * n5 + 5569 / 90720 * n6,
        4397 / 161280 * n4 - 11 / 504 * n5 - 830251 / 7257600 * n6,
        4583 / 161280 * n5 - 108847 / 3991680 * n6,
        20648693 / 638668800 * n6,
    )


def _rectifying_radius(a: float, n: float) -> float:
    n2 = n * n
    return a / (1 + n) * (1 + 1 / 4 * n2 + 1 / 64 * n2 * n2 + 1 / 256 * n2**3)


def utm_central_meridian(zone: int) -> float:
    return (zone - 1) * 6.0 - 180.0 + 3.0


def check_utm_zone(zone: int) -> None:
    if not 1 <= zone <= 60:
        raise InvalidArgumentError(f"Invalid UTM zone {zone}")


def utm_zone_for(lon: float, lat: float) -> tuple[int, Hemisphere]:
    """
    Standard UTM zone and hemisphere for a geographic position.

    Includes the Norway (zone 32V) and Svalbard (zones 31X-37X) exceptions.
    """
    lon = (lon + 180.0) % 360.0 - 180.0
    zone = int(math.floor((lon + 180.0) / 6.0)) + 1
    zone = min(zone, 60)
    if 56.0 <= lat < 64.0 and zone == 31 and lon >= 3.0:
        zone = 32
    elif 72.0 <= lat <= 84.0 and zone in (32, 34, 36):
        # Svalbard: zones 32, 34 and 36 are not used
        zone = zone - 1 if lon < utm_central_meridian(zone) else zone + 1
    hemisphere = Hemisphere.NORTH if lat >= 0.0 else Hemisphere.SOUTH
    return zone, hemisphere


def geographic_to_utm(
    lon: float,
    lat: float,
    zone: int,
    hemisphere: Hemisphere,
    ellipsoid: "Ellipsoid",
) -> tuple[float, float, float, float]:
    """
    Project a geographic position to UTM in the given zone and hemisphere.

    The position is not required to lie inside the zone; positions far from
    the central meridian produce large, distorted (but finite) values.

    Returns:
        Tuple of (easting, northing, convergence in degrees, scale factor)
    """
    check_utm_zone(zone)
    f = ellipsoid.f
    e = math.sqrt(f * (2.0 - f))
    n = f / (2.0 - f)
    k0 = UTM_SCALE_FACTOR

    phi = math.radians(lat)
    lam = math.radians(lon - utm_central_meridian(zone))

    cos_lam = math.cos(lam)
    sin_lam = math.sin(lam)
    tan_lam = math.tan(lam)

    tau = math.tan(phi)
    sigma = math.sinh(e * math.atanh(e * tau / math.sqrt(1.0 + tau * tau)))
    tau_p = tau * math.sqrt(1.0 + sigma * sigma) - sigma * math.sqrt(1.0 + tau * tau)

    xi_p = math.atan2(tau_p, cos_lam)
    eta_p = math.asinh(sin_lam / math.sqrt(tau_p * tau_p + cos_lam * cos_lam))

    big_a = _rectifying_radius(ellipsoid.a, n)
    alpha = _alpha(n)

    xi = xi_p
    eta = eta_p
    p_p = 1.0
    q_p = 0.0
    for j, a_j in enumerate(alpha, start=1):
        xi += a_j * math.sin(2 * j * xi_p) * math.cosh(2 * j * eta_p)
        eta += a_j * math.cos(2 * j * xi_p) * math.sinh(2 * j * eta_p)
        p_p += 2 * j * a_j * math.cos(2 * j * xi_p) * math.cosh(2 * j * eta_p)
        q_p += 2 * j * a_j * math.sin(2 * j * xi_p) * math.sinh(2 * j * eta_p)

    x = k0 * big_a * eta
    y = k0 * big_a * xi

    gamma_p = math.atan(tau_p / math.sqrt(1.0 + tau_p * tau_p) * tan_lam)
    gamma_pp = math.atan2(q_p, p_p)
    convergence = math.degrees(gamma_p + gamma_pp)

    sin_phi = math.sin(phi)
    k_p = (
        math.sqrt(1.0 - e * e * sin_phi * sin_phi)
        * math.sqrt(1.0 + tau * tau)
        / math.sqrt(tau_p * tau_p + cos_lam * cos_lam)
    )
    k_pp = big_a / ellipsoid.a * math.sqrt(p_p * p_p + q_p * q_p)
    scale = k0 * k_p * k_pp

    easting = x + UTM_FALSE_EASTING
    northing = y + UTM_FALSE_NORTHING if hemisphere is Hemisphere.SOUTH else y
    return easting, northing, convergence, scale


def utm_to_geographic(
    easting: float,
    northing: float,
    zone: int,
    hemisphere: Hemisphere,
    ellipsoid: "Ellipsoid",
) -> tuple[float, float, float, float]:
    """
    Unproject UTM easting/northing to geographic coordinates.

    Returns:
        Tuple of (lon, lat, convergence in degrees, scale factor)
    """
    check_utm_zone(zone)
    f = ellipsoid.f
    e = math.sqrt(f * (2.0 - f))
    n = f / (2.0 - f)
    k0 = UTM_SCALE_FACTOR
    big_a = _rectifying_radius(ellipsoid.a, n)

    x = easting - UTM_FALSE_EASTING
    y = northing - UTM_FALSE_NORTHING if hemisphere is Hemisphere.SOUTH else northing

    eta = x / (k0 * big_a)
    xi = y / (k0 * big_a)

    xi_p = xi
    eta_p = eta
    beta = _beta(n)
    for j, b_j in enumerate(beta, start=1):
        xi_p -= b_j * math.sin(2 * j * xi) * math.cosh(2 * j * eta)
        eta_p -= b_j * math.cos(2 * j * xi) * math.sinh(2 * j * eta)

    sinh_eta_p = math.sinh(eta_p)
    sin_xi_p = math.sin(xi_p)
    cos_xi_p = math.cos(xi_p)

    tau_p = sin_xi_p / math.sqrt(sinh_eta_p * sinh_eta_p + cos_xi_p * cos_xi_p)

    # Newton-Raphson iteration for the conformal latitude
    tau_i = tau_p
    for _ in range(20):
        sigma_i = math.sinh(e * math.atanh(e * tau_i / math.sqrt(1.0 + tau_i * tau_i)))
        tau_ip = tau_i * math.sqrt(1.0 + sigma_i * sigma_i) - sigma_i * math.sqrt(
            1.0 + tau_i * tau_i
        )
        delta = (
            (tau_p - tau_ip)
            / math.sqrt(1.0 + tau_ip * tau_ip)
            * (1.0 + (1.0 - e * e) * tau_i * tau_i)
            / ((1.0 - e * e) * math.sqrt(1.0 + tau_i * tau_i))
        )
        tau_i += delta
        if abs(delta) <= 1e-12:
            break

    phi = math.atan(tau_i)
    lam = math.atan2(sinh_eta_p, cos_xi_p)

    p = 1.0
    q = 0.0
    for j, b_j in enumerate(beta, start=1):
        p -= 2 * j * b_j * math.cos(2 * j * xi) * math.cosh(2 * j * eta)
        q += 2 * j * b_j * math.sin(2 * j * xi) * math.sinh(2 * j * eta)
    gamma_p = math.atan(math.tan(xi_p) * math.tanh(eta_p))
    gamma_pp = math.atan2(q, p)
    convergence = math.degrees(gamma_p + gamma_pp)

    sin_phi = math.sin(phi)
    k_p = (
        math.sqrt(1.0 - e * e * sin_phi * sin_phi)
        * math.sqrt(1.0 + tau_i * tau_i)
        * math.sqrt(sinh_eta_p * sinh_eta_p + cos_xi_p * cos_xi_p)
    )
    k_pp = big_a / ellipsoid.a / math.sqrt(p * p + q * q)
    scale = k0 * k_p * k_pp

    lon = math.degrees(lam) + utm_central_meridian(zone)
    return lon, math.degrees(phi), convergence, scale


def lonlat_to_web_mercator(lon: float, lat: float) -> tuple[float, float]:
    """
    Spherical Mercator (EPSG:3857) forward projection.

    Latitude is not clamped: |lat| >= 90 yields +/- infinity. The range
    where the projection is meaningful is about +/- 85.05112878 degrees.
    """
    x = math.radians(lon) * EARTH_RADIUS_WGS84
    if lat >= 90.0:
        return x, math.inf
    if lat <= -90.0:
        return x, -math.inf
    y = math.log(math.tan(math.pi / 4.0 + math.radians(lat) / 2.0))
    return x, y * EARTH_RADIUS_WGS84


def web_mercator_to_lonlat(x: float, y: float) -> tuple[float, float]:
    """Spherical Mercator (EPSG:3857) inverse projection"""
    lon = math.degrees(x / EARTH_RADIUS_WGS84)
    # gudermannian, written with tanh so that large y cannot overflow
    lat = math.degrees(2.0 * math.atan(math.tanh(y / EARTH_RADIUS_WGS84 / 2.0)))
    return lon, lat
