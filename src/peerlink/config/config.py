"""
Module settings read from configobj files.

A configuration named `peerlink` in a directory is made of these files, later ones winning:

- peerlink.default.cfg      shipped defaults
- peerlink.<platform>.cfg   windows, linux, osx...
- ~/peerlink.cfg            the user's overrides
- peerlink.cfg              local overrides beside the defaults

When peerlink.schema.cfg exists the merged result is validated against it, which also converts
the values to their declared types.
"""

import os
import platform

from configobj import ConfigObj, ConfigObjError, Section
from validate import Validator

config_extension = '.cfg'


def config_filename(name, directory=None, flavor=None):
    """
    >>> config_filename('peerlink', flavor='default')
    'peerlink.default.cfg'
    >>> config_filename('peerlink')
    'peerlink.cfg'
    """
    base = name + '.' + flavor if flavor else name
    return os.path.join(directory or '', base + config_extension)


def read_config_file(file, must_exist=True) -> ConfigObj:
    """
    Reads one configuration file. A missing file is an IOError when must_exist,
    otherwise it reads as an empty configuration.
    """
    if not must_exist and not os.path.exists(file):
        return ConfigObj()
    try:
        return ConfigObj(file, interpolation='Template', file_error=must_exist)
    except ConfigObjError as e:
        raise type(e)('%s at %s' % (e, file))


def platform_flavor(system=None):
    """
    >>> platform_flavor('Windows')
    'windows'
    >>> platform_flavor('Darwin')
    'osx'
    """
    system = (system or platform.system()).lower()
    return 'osx' if system == 'darwin' else system


def user_config_file(name):
    return os.path.expanduser('~/' + name + config_extension)


def config_layers(name, directory):
    """ the files making up a configuration, in merge order. """
    return [config_filename(name, directory, 'default'),
            config_filename(name, directory, platform_flavor()),
            user_config_file(name),
            config_filename(name, directory)]


def load_config(name, directory) -> ConfigObj:
    schema = config_filename(name, directory, 'schema')
    config = ConfigObj(configspec=schema) if os.path.exists(schema) else ConfigObj()
    for file in config_layers(name, directory):
        config.merge(read_config_file(file, must_exist=False))

    if config.configspec is not None:
        result = config.validate(Validator())
        if result is not True:
            raise ConfigObjError("the config file %s failed validation %s" % (name, result))
    return config


def section_at(conf: Section, path):
    """ :return: the section reached by following the names in path, or None """
    for name in path:
        conf = conf.get(name)
        if not isinstance(conf, Section):
            return None
    return conf


def apply_section(section: Section, target):
    """ sets the scalar values of a section on the target, for attributes it already has. """
    for k, v in section.items():
        if not isinstance(v, Section) and hasattr(target, k):
            setattr(target, k, v)


def apply(target, config_path, config_name, directory):
    """
    Applies the values found under a dotted section path of a configuration to a target object.
    """
    section = section_at(load_config(config_name, directory), config_path.split('.'))
    if section:
        apply_section(section, target)


def module_name(module):
    """
    The dotted name of a module. A module run as __main__ is named from its package and file.
    """
    if not module.__package__:
        raise ConfigObjError('module %s has no package' % module.__name__)
    if module.__name__ != '__main__':
        return module.__name__
    return module.__package__ + '.' + os.path.splitext(os.path.basename(module.__file__))[0]


def configure_module(module, config_name=None):
    """
    Applies configuration to the module-level settings of the given module.

    The settings live in a section path mirroring the module's dotted name (peerlink.session
    reads [peerlink] [[session]]). The files are named after config_name, or the module's own
    name when not given, and are located in the module's directory.
    """
    name = module_name(module)
    apply(module, name, config_name or name.split('.')[-1], os.path.dirname(module.__file__))
