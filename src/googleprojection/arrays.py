"""Vectorised projection over numpy arrays of coordinate pairs.

Arrays have shape ``(..., 2)``: a single pair, an ``(N, 2)`` table, or any
stack of them. The formulas, the latitude clamp and the half-up rounding
match :class:`googleprojection.projection.GoogleProjection`.

>>> from googleprojection.projection import GoogleProjection
>>> proj = GoogleProjection()
>>> forward_pixel_array(proj, [[0.0, 0.0], [13.2, 55.9]], 2).tolist()
[[512.0, 512.0], [550.0, 319.0]]
>>> forward_pixel_array(proj, [0.0, 0.0], 30) is None
True
"""
import logging

import numpy as np

from googleprojection.projection import SIN_LAT_LIMIT

logger = logging.getLogger(__name__)

__all__ = [
    'forward_subpixel_array',
    'forward_pixel_array',
    'inverse_array',
    ]


def _as_pairs(values) -> np.ndarray:
    arr = np.asarray(values, dtype=np.float64)
    if arr.ndim == 0 or arr.shape[-1] != 2:
        raise ValueError(f'Expected an array of shape (..., 2), got {arr.shape}')
    return arr


def forward_subpixel_array(engine, lonlat, zoom: int) -> np.ndarray | None:
    """Project lon/lat degrees to continuous pixels, None for an unsupported zoom"""
    k = engine.constants(zoom)
    if k is None:
        return None
    arr = _as_pairs(lonlat)
    px_x = k.origin + arr[..., 0] * k.degrees_per_pixel
    # sin(+-inf) is nan, as in the scalar path
    with np.errstate(invalid='ignore'):
        sin_lat = np.clip(np.sin(np.radians(arr[..., 1])), -SIN_LAT_LIMIT, SIN_LAT_LIMIT)
        px_y = k.origin + 0.5 * np.log((1.0 + sin_lat) / (1.0 - sin_lat)) * -k.radians_scale
    return np.stack([px_x, px_y], axis=-1)


def forward_pixel_array(engine, lonlat, zoom: int) -> np.ndarray | None:
    """Whole pixel variant of :func:`forward_subpixel_array`"""
    px = forward_subpixel_array(engine, lonlat, zoom)
    if px is None:
        return None
    return np.floor(px + 0.5)


def inverse_array(engine, pixels, zoom: int) -> np.ndarray | None:
    """Unproject pixels to lon/lat degrees, None for an unsupported zoom

    >>> from googleprojection.projection import GoogleProjection
    >>> inverse_array(GoogleProjection(512), [[512.0, 512.0]], 1).tolist()
    [[0.0, 0.0]]
    """
    k = engine.constants(zoom)
    if k is None:
        return None
    arr = _as_pairs(pixels)
    lon = (arr[..., 0] - k.origin) / k.degrees_per_pixel
    g = (arr[..., 1] - k.origin) / -k.radians_scale
    # exp overflows to inf far north of the grid, giving lat 90
    with np.errstate(over='ignore'):
        lat = np.degrees(2.0 * np.arctan(np.exp(g)) - 0.5 * np.pi)
    return np.stack([lon, lat], axis=-1)


if __name__ == '__main__':
    __import__('doctest').testmod(optionflags=4 | 8 | 32)
