# -*- coding: utf-8 -*-

"""Manages settings and config file.

Settings are loaded from a configuration file. If they don't exists, default
values are provided.
When an option is set, the config file is updated.

The module is usable without calling ``load()``: in this case, only the
default values are returned.
"""

import configparser
import logging
import os.path
from . import path as pledge_path

_logger = logging.getLogger(__name__)


# Default config dict. Values not present in this dict are not valid.
# Each entry contains the type expected, and the default value.
_default_config = {
    'debug_mode': {'type': bool, 'default': False},
    'log_levels': {'type': dict, 'default': {}},
    'report_unhandled_rejections': {'type': bool, 'default': True},
    'thread_pool_workers': {'type': int, 'default': 4}
}

# Actual config parser
_config_parser = configparser.ConfigParser()
_config_parser.add_section('config')


def _get_config_file_path():
    return os.path.join(pledge_path.get_config_dir(), 'pledge.ini')


def load():
    """Find and load the config file."""
    config_file_path = _get_config_file_path()

    if not _config_parser.read(config_file_path):
        _logger.warning('Unable to load config file: %s' % config_file_path)


def get(key):
    """Find and return a configuration entry

    If the entry is not specified in the config file, or if its value can't
    be converted to the expected type, the default value is returned.

    Args:
        key (string): the entry key.
    Returns:
        The corresponding value found.
    Raises:
        KeyError: if the config entry doesn't exists.
    """
    if key not in _default_config:
        raise KeyError(key)
    entry = _default_config[key]
    try:
        if entry['type'] is bool:
            return _config_parser.getboolean('config', key)
        elif entry['type'] is int:
            return _config_parser.getint('config', key)
        elif entry['type'] is dict:
            # Dict entries are in the form 'key=value;key2=value2'
            dict_str = _config_parser.get('config', key)
            result = {}
            for pair in filter(None, dict_str.split(';')):
                try:
                    (k, v) = pair.split('=')
                    result[k.strip()] = v.strip()
                except ValueError:
                    _logger.warning('Unable to parse pair key=value: "%s"'
                                    % pair)
            return result
        else:
            return _config_parser.get('config', key)
    except configparser.NoOptionError:
        return entry['default']
    except ValueError:
        _logger.warning('Invalid value for config entry "%s"; use default '
                        'value %r instead.' % (key, entry['default']))
        return entry['default']


def set(key, value):
    """Set a configuration entry.

    Args:
        key (string): the entry key.
        value: the new value to set. It will be converted to string. If
            None, the entry is removed and the default value applies again.
    Raises:
        KeyError: if the config entry is not valid.
    """
    if key not in _default_config:
        raise KeyError(key)
    if value is None:
        _config_parser.remove_option('config', key)
    elif isinstance(value, dict):
        _config_parser.set('config', key,
                           ';'.join('%s=%s' % kv for kv in value.items()))
    else:
        _config_parser.set('config', key, str(value))
    config_file_path = _get_config_file_path()
    try:
        with open(config_file_path, 'w') as config_file:
            _config_parser.write(config_file)
        _logger.debug('Config file modified.')
    except IOError:
        _logger.warning('Unable to write in the config file', exc_info=True)
