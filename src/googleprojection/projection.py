"""Spherical Web-Mercator projection between lon/lat degrees and pixels.

Pixels follow the tiling used by the common web map providers: at zoom `z`
the world is a square of ``tile_size * 2**z`` pixels, the origin is the
top-left corner, x grows east and y grows south.

>>> forward_pixel((0.0, 0.0), 0)
(128.0, 128.0)
>>> forward_pixel((100.0, 54.0), 12)
(815559.0, 336679.0)
>>> forward_pixel((0.0, 0.0), 30) is None
True
"""
import logging
import math
import operator
from dataclasses import dataclass
from types import MappingProxyType

from googleprojection import config
from googleprojection.configutils import ConfigOptions, load_options
from googleprojection.coords import coord_like, coord_x, coord_y

logger = logging.getLogger(__name__)

__all__ = [
    'DEFAULT_TILE_SIZE',
    'DEFAULT_MAX_ZOOM',
    'SIN_LAT_LIMIT',
    'ZOOM_LIMIT',
    'ZoomConstants',
    'ProjectionOptions',
    'GoogleProjection',
    'new_engine',
    'engine_from_options',
    'tile_of',
    'forward_subpixel',
    'forward_pixel',
    'inverse',
    'from_ll_to_subpixel',
    'from_ll_to_pixel',
    'from_pixel_to_ll',
    ]

DEFAULT_TILE_SIZE = 256
DEFAULT_MAX_ZOOM = 30

# 2.0 ** zoom overflows past this
ZOOM_LIMIT = 1024

# sin(lat) bound, keeps the log finite at the poles (about +-89.19 deg)
SIN_LAT_LIMIT = 0.9999


def round_half_up(value: float) -> float:
    """Round to the nearest integer, halves towards +inf. Non-finite values
    pass through.

    >>> round_half_up(2.5), round_half_up(-2.5), round_half_up(0.49)
    (3.0, -2.0, 0.0)
    >>> round_half_up(float('inf'))
    inf
    """
    if not math.isfinite(value):
        return value
    return float(math.floor(value + 0.5))


def _project(k: 'ZoomConstants', lon: float, lat: float) -> tuple[float, float]:
    px_x = k.origin + lon * k.degrees_per_pixel
    if math.isinf(lat):
        sin_lat = math.nan
    else:
        sin_lat = min(max(math.sin(math.radians(lat)), -SIN_LAT_LIMIT), SIN_LAT_LIMIT)
    px_y = k.origin + 0.5 * math.log((1.0 + sin_lat) / (1.0 - sin_lat)) * -k.radians_scale
    return px_x, px_y


def _unproject(k: 'ZoomConstants', px_x: float, px_y: float) -> tuple[float, float]:
    lon = (px_x - k.origin) / k.degrees_per_pixel
    g = (px_y - k.origin) / -k.radians_scale
    try:
        e = math.exp(g)
    except OverflowError:
        e = math.inf
    lat = math.degrees(2.0 * math.atan(e) - 0.5 * math.pi)
    return lon, lat


@dataclass(frozen=True)
class ZoomConstants:
    """Transform constants for one zoom level.

    >>> k = ZoomConstants.compute(256, 1)
    >>> k.map_size, k.origin, round(k.degrees_per_pixel, 6)
    (512.0, 256.0, 1.422222)
    """
    zoom: int
    map_size: float
    degrees_per_pixel: float
    radians_scale: float
    origin: float

    @classmethod
    def compute(cls, tile_size: float, zoom: int) -> 'ZoomConstants':
        map_size = tile_size * 2.0 ** zoom
        return cls(
            zoom=zoom,
            map_size=map_size,
            degrees_per_pixel=map_size / 360.0,
            radians_scale=map_size / (2.0 * math.pi),
            origin=map_size / 2.0,
            )


@dataclass
class ProjectionOptions(ConfigOptions):
    tile_size: float = DEFAULT_TILE_SIZE
    max_zoom: int = DEFAULT_MAX_ZOOM
    precompute: bool = True


class GoogleProjection:
    """Projection engine for a fixed tile size.

    Supported zooms are ``0 <= zoom < max_zoom``. Any other integer zoom makes
    the operations return None. Results are built with the same type as the
    input coordinate (see :mod:`googleprojection.coords`).

    Constants for every supported zoom are built up front when `precompute`
    is set, otherwise on first use of each zoom. Either way the engine is
    read-only once built and may be shared between threads.

    >>> proj = GoogleProjection(512)
    >>> proj.forward_pixel((0.0, 0.0), 1)
    (512.0, 512.0)
    >>> proj.inverse((512.0, 512.0), 1)
    (0.0, 0.0)
    >>> GoogleProjection(0)
    Traceback (most recent call last):
     ...
    ValueError: tile_size must be a positive finite number, got 0
    """

    def __init__(self, tile_size: float = DEFAULT_TILE_SIZE,
                 max_zoom: int = DEFAULT_MAX_ZOOM, precompute: bool = True):
        if isinstance(tile_size, bool) or not isinstance(tile_size, int | float) \
                or not math.isfinite(tile_size) or tile_size <= 0:
            raise ValueError(f'tile_size must be a positive finite number, got {tile_size!r}')
        max_zoom = operator.index(max_zoom)
        if not 1 <= max_zoom <= ZOOM_LIMIT:
            raise ValueError(f'max_zoom must be between 1 and {ZOOM_LIMIT}, got {max_zoom}')
        if not math.isfinite(tile_size * 2.0 ** (max_zoom - 1)):
            raise ValueError(f'tile_size {tile_size!r} overflows at zoom {max_zoom - 1}')
        self.tile_size = tile_size
        self.max_zoom = max_zoom
        self.precompute = precompute
        if precompute:
            self._table = MappingProxyType({
                z: ZoomConstants.compute(tile_size, z) for z in range(max_zoom)
                })
        else:
            self._table = {}
        logger.debug(f'Created {self!r}')

    def __repr__(self):
        return f'{self.__class__.__name__}(tile_size={self.tile_size!r}, ' \
               f'max_zoom={self.max_zoom!r}, precompute={self.precompute!r})'

    @classmethod
    def from_options(cls, options=None, config=None, /, **kw) -> 'GoogleProjection':
        """See :func:`engine_from_options`"""
        return engine_from_options(options, config, **kw)

    def supports(self, zoom: int) -> bool:
        """Whether `zoom` is inside the supported range

        >>> proj = GoogleProjection()
        >>> proj.supports(0), proj.supports(29), proj.supports(30), proj.supports(-1)
        (True, True, False, False)
        """
        return 0 <= operator.index(zoom) < self.max_zoom

    def constants(self, zoom: int) -> ZoomConstants | None:
        """Constants for `zoom`, None when the zoom is unsupported"""
        if not self.supports(zoom):
            return None
        zoom = operator.index(zoom)
        k = self._table.get(zoom)
        if k is None:
            k = self._table.setdefault(zoom, ZoomConstants.compute(self.tile_size, zoom))
            logger.debug(f'Computed constants for zoom {zoom}')
        return k

    def forward_subpixel(self, coord, zoom: int):
        """Project lon/lat degrees to continuous pixel coordinates

        Latitude goes through a clamp on its sine so the poles stay finite.
        Longitude is not wrapped, values past +-180 land outside the grid.

        >>> px, py = GoogleProjection().forward_subpixel((0.0, 90.0), 0)
        >>> px, math.isfinite(py)
        (128.0, True)
        """
        k = self.constants(zoom)
        if k is None:
            return None
        return coord_like(coord, *_project(k, coord_x(coord), coord_y(coord)))

    def forward_pixel(self, coord, zoom: int):
        """Project lon/lat degrees to whole pixels (half-up rounding)"""
        k = self.constants(zoom)
        if k is None:
            return None
        px_x, px_y = _project(k, coord_x(coord), coord_y(coord))
        return coord_like(coord, round_half_up(px_x), round_half_up(px_y))

    def inverse(self, pixel, zoom: int):
        """Unproject pixel coordinates (whole or not) to lon/lat degrees

        >>> lon, lat = GoogleProjection().inverse((78.0, 78.0), 12)
        >>> round(lon, 10), round(lat, 10)
        (-179.9732208252, 85.0488180898)
        """
        k = self.constants(zoom)
        if k is None:
            return None
        return coord_like(pixel, *_unproject(k, coord_x(pixel), coord_y(pixel)))

    from_ll_to_subpixel = forward_subpixel
    from_ll_to_pixel = forward_pixel
    from_pixel_to_ll = inverse

    def tile_for(self, coord, zoom: int) -> tuple[int, int] | None:
        """Tile indices containing a lon/lat at `zoom`

        >>> GoogleProjection().tile_for((13.2, 55.9), 2)
        (2, 1)
        """
        k = self.constants(zoom)
        if k is None:
            return None
        return tile_of(_project(k, coord_x(coord), coord_y(coord)), self.tile_size)

    def forward_subpixel_many(self, lonlat, zoom: int):
        """numpy variant of :meth:`forward_subpixel` for an (N, 2) array"""
        from googleprojection.arrays import forward_subpixel_array
        return forward_subpixel_array(self, lonlat, zoom)

    def forward_pixel_many(self, lonlat, zoom: int):
        """numpy variant of :meth:`forward_pixel` for an (N, 2) array"""
        from googleprojection.arrays import forward_pixel_array
        return forward_pixel_array(self, lonlat, zoom)

    def inverse_many(self, pixels, zoom: int):
        """numpy variant of :meth:`inverse` for an (N, 2) array"""
        from googleprojection.arrays import inverse_array
        return inverse_array(self, pixels, zoom)


def new_engine(tile_size: float = DEFAULT_TILE_SIZE) -> GoogleProjection:
    """Engine for `tile_size` with the standard zoom range"""
    return GoogleProjection(tile_size)


@load_options(cls=ProjectionOptions, config=config, default='projection')
def engine_from_options(options, config=None, **kw) -> GoogleProjection:
    """Build an engine from options.

    `options` may be a :class:`ProjectionOptions`, a dict, a dotted path to a
    Setting in `config`, or omitted in favour of keyword fields. With nothing
    given the `projection` Setting of :mod:`googleprojection.config` is used.

    >>> engine_from_options(tile_size=512)
    GoogleProjection(tile_size=512, max_zoom=30, precompute=True)
    >>> engine_from_options({'tile_size': 128, 'precompute': False})
    GoogleProjection(tile_size=128, max_zoom=30, precompute=False)
    """
    return GoogleProjection(options.tile_size, options.max_zoom, options.precompute)


def tile_of(pixel, tile_size: float = DEFAULT_TILE_SIZE) -> tuple[int, int]:
    """Integer tile indices of the tile containing `pixel`

    >>> tile_of((550.0, 319.0))
    (2, 1)
    >>> tile_of((-0.5, 256.0))
    (-1, 1)
    """
    return math.floor(coord_x(pixel) / tile_size), math.floor(coord_y(pixel) / tile_size)


_default_projection = GoogleProjection(DEFAULT_TILE_SIZE)


def forward_subpixel(coord, zoom: int):
    """:meth:`GoogleProjection.forward_subpixel` with 256 pixel tiles"""
    return _default_projection.forward_subpixel(coord, zoom)


def forward_pixel(coord, zoom: int):
    """:meth:`GoogleProjection.forward_pixel` with 256 pixel tiles

    >>> forward_pixel((13.2, 55.9), 2)
    (550.0, 319.0)
    """
    return _default_projection.forward_pixel(coord, zoom)


def inverse(pixel, zoom: int):
    """:meth:`GoogleProjection.inverse` with 256 pixel tiles"""
    return _default_projection.inverse(pixel, zoom)


from_ll_to_subpixel = forward_subpixel
from_ll_to_pixel = forward_pixel
from_pixel_to_ll = inverse


if __name__ == '__main__':
    __import__('doctest').testmod(optionflags=4 | 8 | 32)
