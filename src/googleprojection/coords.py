"""Coordinate capability: anything with x(), y() and a two-number constructor.

The projection code never names a concrete point type. It reads components
through :func:`coord_x` / :func:`coord_y` and builds results through
:func:`coord_like`, which returns a value of the same type as its template.

Three kinds of value participate, looked up in this order once per type:

* types registered with :func:`register_coord`, for point classes whose API
  cannot be changed
* types providing the :class:`Coord` protocol (``x()``, ``y()`` and a
  ``with_xy`` classmethod), such as :class:`Point`
* plain two-item tuples (including namedtuples) and lists

>>> p = Point(13.2, 55.9)
>>> p.x(), p.y()
(13.2, 55.9)
>>> coord_like(p, 1, 2)
Point(1.0, 2.0)
>>> coord_like((0.0, 0.0), 1.5, 2.5)
(1.5, 2.5)
>>> coord_like([0.0, 0.0], 1.5, 2.5)
[1.5, 2.5]
"""
import logging
from collections.abc import Callable
from typing import Any, NamedTuple, Protocol, TypeVar, runtime_checkable

logger = logging.getLogger(__name__)

__all__ = [
    'Coord',
    'Point',
    'CoordAdapter',
    'register_coord',
    'unregister_coord',
    'coord_x',
    'coord_y',
    'coord_like',
    ]

C = TypeVar('C')


@runtime_checkable
class Coord(Protocol):
    """Structural interface for a pair of floats.

    Interpretation is by convention only: ``(lon, lat)`` in degrees going
    into a forward projection, ``(px_x, px_y)`` coming out of it.
    """

    def x(self) -> float:
        ...

    def y(self) -> float:
        ...

    @classmethod
    def with_xy(cls, x: float, y: float) -> 'Coord':
        ...


class Point(tuple):
    """Default immutable coordinate pair.

    Compares and unpacks like a plain tuple.

    >>> lon, lat = Point(1, 2)
    >>> lon, lat
    (1.0, 2.0)
    >>> Point(1, 2) == (1.0, 2.0)
    True
    >>> Point.with_xy(3, 4)
    Point(3.0, 4.0)
    """

    __slots__ = ()

    def __new__(cls, x: float, y: float):
        return tuple.__new__(cls, (float(x), float(y)))

    def __repr__(self):
        return f'Point({self[0]!r}, {self[1]!r})'

    def __getnewargs__(self):
        return tuple(self)

    def x(self) -> float:
        return self[0]

    def y(self) -> float:
        return self[1]

    @classmethod
    def with_xy(cls, x: float, y: float) -> 'Point':
        return cls(x, y)


class CoordAdapter(NamedTuple):
    """Accessors and constructor for a registered point type"""
    x: Callable[[Any], float]
    y: Callable[[Any], float]
    with_xy: Callable[[float, float], Any]


_adapters: dict[type, CoordAdapter] = {}

# adapter resolved once per concrete type, cleared on (un)registration
_resolved: dict[type, CoordAdapter] = {}


def register_coord(cls: type, x: Callable[[Any], float], y: Callable[[Any], float],
                   with_xy: Callable[[float, float], Any] | None = None) -> type:
    """Let instances of `cls` be projected without wrapping them.

    A registration takes precedence over the :class:`Coord` protocol and
    over the built-in handling of tuples and lists.

    Parameters
        cls: the point type to register (subclasses are covered too)
        x: callable returning the first component of an instance
        y: callable returning the second component of an instance
        with_xy: callable building an instance from two floats, defaults to `cls`

    Returns
        `cls`, so this can also be used from a class decorator helper

    >>> class Vec:
    ...     def __init__(self, a, b):
    ...         self.a, self.b = a, b
    >>> _ = register_coord(Vec, x=lambda v: v.a, y=lambda v: v.b)
    >>> v = coord_like(Vec(0, 0), 5, 6)
    >>> type(v).__name__, v.a, v.b
    ('Vec', 5, 6)
    >>> unregister_coord(Vec)
    """
    if not callable(x) or not callable(y):
        raise TypeError('x and y accessors must be callable')
    _adapters[cls] = CoordAdapter(x, y, with_xy or cls)
    _resolved.clear()
    logger.debug(f'Registered coordinate adapter for {cls.__qualname__}')
    return cls


def unregister_coord(cls: type) -> None:
    """Remove a registration made with :func:`register_coord`"""
    _adapters.pop(cls, None)
    _resolved.clear()


def _check_pair(c):
    if len(c) != 2:
        raise TypeError(f'Expected a pair of numbers, got {len(c)} items: {c!r}')


def _pair_x(c):
    _check_pair(c)
    return c[0]


def _pair_y(c):
    _check_pair(c)
    return c[1]


def _build_adapter(klass: type) -> CoordAdapter | None:
    for base in klass.__mro__:
        adapter = _adapters.get(base)
        if adapter is not None:
            return adapter
    if issubclass(klass, Coord):
        return CoordAdapter(klass.x, klass.y, klass.with_xy)
    if klass is tuple:
        return CoordAdapter(_pair_x, _pair_y, lambda x, y: (x, y))
    if issubclass(klass, tuple):
        return CoordAdapter(_pair_x, _pair_y, klass)
    if issubclass(klass, list):
        return CoordAdapter(_pair_x, _pair_y, lambda x, y: klass((x, y)))
    return None


def _adapter_for(c) -> CoordAdapter:
    klass = type(c)
    adapter = _resolved.get(klass)
    if adapter is None:
        adapter = _build_adapter(klass)
        if adapter is None:
            raise TypeError(f'Unsupported coordinate type: {klass.__qualname__}')
        _resolved[klass] = adapter
    return adapter


def coord_x(c) -> float:
    """First component of any supported coordinate value

    >>> coord_x(Point(1, 2)), coord_x((3, 4)), coord_x([5, 6])
    (1.0, 3, 5)
    """
    return _adapter_for(c).x(c)


def coord_y(c) -> float:
    """Second component of any supported coordinate value

    >>> coord_y(Point(1, 2)), coord_y((3, 4)), coord_y([5, 6])
    (2.0, 4, 6)
    """
    return _adapter_for(c).y(c)


def coord_like(template: C, x: float, y: float) -> C:
    """New coordinate of the same concrete type as `template`

    >>> from collections import namedtuple
    >>> LonLat = namedtuple('LonLat', 'lon lat')
    >>> coord_like(LonLat(0, 0), 7.5, 8.5)
    LonLat(lon=7.5, lat=8.5)
    >>> coord_like(object(), 1, 2)
    Traceback (most recent call last):
     ...
    TypeError: Unsupported coordinate type: object
    """
    return _adapter_for(template).with_xy(x, y)


if __name__ == '__main__':
    __import__('doctest').testmod(optionflags=4 | 8 | 32)
