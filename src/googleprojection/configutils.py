"""Config related settings and option loading
"""
import logging
from abc import ABCMeta
from contextlib import contextmanager
from dataclasses import dataclass, fields
from functools import partial, wraps
from typing import Any

logger = logging.getLogger(__name__)

__all__ = [
    'Setting',
    'ConfigOptions',
    'load_options',
    'setting_unlocked',
    'configure_environment',
    ]


class Setting(dict):
    """Dict where d['foo'] can also be accessed as d.foo
    but also automatically creates new sub-attributes of
    type Setting. This behavior can be locked to turn off
    later. WARNING: not copy safe

    >>> cfg = Setting()
    >>> cfg.unlock() # locked after config.py load

    >>> cfg.foo.bar = 1
    >>> hasattr(cfg.foo, 'bar')
    True
    >>> cfg.foo.bar
    1
    >>> cfg.lock()
    >>> cfg.foo.bar = 2
    Traceback (most recent call last):
     ...
    ValueError: This Setting object is locked from editing
    >>> cfg.foo.baz = 3
    Traceback (most recent call last):
     ...
    ValueError: This Setting object is locked from editing
    >>> cfg.unlock()
    >>> cfg.foo.baz = 3
    >>> cfg.foo.baz
    3
    """

    _locked = False

    def __init__(self, *args, **kwargs):
        dict.__init__(self, *args, **kwargs)

    def __getattr__(self, name):
        """Create sub-setting fields on the fly"""
        if name not in self:
            if self._locked:
                raise ValueError('This Setting object is locked from editing')
            self[name] = Setting()
        return self[name]

    def __setattr__(self, name, val):
        if self._locked:
            raise ValueError('This Setting object is locked from editing')
        self[name] = val

    @staticmethod
    def lock():
        Setting._locked = True

    @staticmethod
    def unlock():
        Setting._locked = False


@dataclass
class ConfigOptions(metaclass=ABCMeta):
    """Options dataclass that can be loaded from a config module"""

    @classmethod
    def from_config(cls, setting: str, config=None):
        this = config
        for level in setting.split('.'):
            this = getattr(this, level)
        return cls(**this)


def load_options(func=None, *, cls=ConfigOptions, config=None, default=None):
    """Wrapper that builds dataclass options before calling `func`.

    Standard interface of the wrapped function:
        options: str | dict | ConfigOptions | None
        config: config module that defines options in `Setting` format
        kwargs: option fields, or additional kw-args to pass to function

    `config` is the module used when the caller passes none, and `default`
    the dotted setting path used when the caller passes neither options nor
    any option field.

    >>> from types import SimpleNamespace
    >>> Setting.unlock()
    >>> test_config = SimpleNamespace(test=Setting())
    >>> test_config.test.foo.host = 'foo'
    >>> test_config.test.foo.port = 21
    >>> Setting.lock()

    >>> @dataclass
    ... class Options(ConfigOptions):
    ...     host: str = None
    ...     port: int = None

    >>> @load_options(cls=Options)
    ... def testfunc(options=None, config=None, **kw):
    ...     return options.host, options.port

    >>> testfunc('test.foo', test_config)
    ('foo', 21)
    >>> testfunc({'host': 'bar', 'port': 22})
    ('bar', 22)
    >>> testfunc(host='baz', port=23)
    ('baz', 23)
    >>> Setting.unlock()
    """
    if func is None:
        return partial(load_options, cls=cls, config=config, default=default)

    default_config = config
    names = {field.name for field in fields(cls)}

    @wraps(func)
    def wrapper(options=None, config=None, /, **kw):
        config = kw.pop('config', config)
        if config is None:
            config = default_config
        if options is None and default is not None and not names & kw.keys():
            options = default
        if isinstance(options, dict):
            options = cls(**options)
        if isinstance(options, str):
            options = cls.from_config(options, config=config)
        if options is None:
            options = cls(**{k: v for k, v in kw.items() if k in names})
        if not isinstance(options, cls):
            raise TypeError(f'Expected {cls.__name__}, dict, setting path or None, '
                            f'got {type(options).__name__}')
        kw = {k: v for k, v in kw.items() if k not in names}
        return func(options, config=config, **kw)

    return wrapper


@contextmanager
def setting_unlocked(setting: Setting):
    """Context manager to safely modify a setting with unlock/lock protection.

    Restores the lock state that was in effect on entry.

    Parameters
        setting: The Setting object to unlock/lock
    """
    was_locked = setting._locked
    setting.unlock()
    try:
        yield
    finally:
        if was_locked:
            setting.lock()


def configure_environment(module, **config_overrides: Any) -> None:
    """Configure settings at runtime.

    Dynamically sets configuration values on Setting objects in the provided module.
    Keys should follow the pattern 'setting_attribute' or 'setting_nested_attribute'.

    Parameters
        module: The module containing Setting objects to configure
        **config_overrides: Configuration values to set, keyed by underscore-joined path

    >>> from types import SimpleNamespace
    >>> Setting.unlock()
    >>> mod = SimpleNamespace(projection=Setting(tile_size=256))
    >>> Setting.lock()
    >>> configure_environment(mod, projection_tile_size=512)
    >>> mod.projection.tile_size
    512
    >>> Setting.unlock()
    """
    for key, value in config_overrides.items():
        parts = key.split('_')

        setting_obj = None
        attr_parts = []

        for i in range(1, len(parts) + 1):
            setting_name = '_'.join(parts[:i])
            if hasattr(module, setting_name):
                setting_obj = getattr(module, setting_name)
                attr_parts = parts[i:]
                break

        logger.debug(f'Processing config key: {key} -> setting_obj found: {setting_obj is not None}')

        if not isinstance(setting_obj, Setting):
            logger.debug(f'No Setting instance found for key {key}')
            continue

        if not attr_parts:
            logger.debug(f'Key {key} matches setting name exactly, cannot set value')
            continue

        with setting_unlocked(setting_obj):
            target = setting_obj
            attr_parts = _join_existing(target, attr_parts)
            for part in attr_parts[:-1]:
                target = getattr(target, part)
                logger.debug(f'Navigated to attribute: {part}')

            logger.debug(f'Setting {key} = {value} on target object')
            setattr(target, attr_parts[-1], value)


def _join_existing(target: Setting, parts: list[str]) -> list[str]:
    """Rejoin underscore-split parts that name an existing key, e.g.
    ['tile', 'size'] -> ['tile_size'] when `tile_size` is already set.
    """
    joined = []
    i = 0
    while i < len(parts):
        for j in range(len(parts), i, -1):
            name = '_'.join(parts[i:j])
            if j == i + 1 or name in target:
                joined.append(name)
                i = j
                break
        if isinstance(target, Setting) and joined[-1] in target:
            target = target[joined[-1]]
        else:
            target = {}
    return joined


if __name__ == '__main__':
    __import__('doctest').testmod(optionflags=4 | 8 | 32)
