"""
Loads layered configuration files with configobj, validated against a schema.

For a configuration named `name` in a directory, these files are read and merged, later files
overriding earlier ones:
- name.default.cfg
- name.<os>.cfg, for example name.linux.cfg
- ~/name.cfg, the user's own settings
- name.cfg

The merged configuration is validated against name.schema.cfg, which also supplies defaults and
converts values to their declared types.
"""
import os
import platform

from configobj import ConfigObj, ConfigObjError, Section
from validate import Validator

# The default extension for configuration files
config_extension = '.cfg'

# The name of this package's configuration and the directory holding its files
settings_name = 'lircconnect'
settings_directory = os.path.dirname(__file__)


def config_flavor(name, flavor=None):
    """
    >>> config_flavor('lircconnect', 'schema')
    'lircconnect.schema'
    """
    configname = name if not flavor else name + '.' + flavor
    return configname


def config_filename(name, directory=None):
    """
    Determines the location of a config file in the given directory.
    """
    return os.path.join(directory or '', name + config_extension)


def load_config_file_base(file, must_exist=True):
    """
    Loads a configuration file
    :param file:        The configuration file to load
    :param must_exist:  when True, the file must exist or an exception is thrown.
    :return: The ConfigObj instance for the file.
    """
    try:
        return ConfigObj(file, interpolation='Template', file_error=must_exist) \
            if must_exist or os.path.exists(file) else ConfigObj()
    except ConfigObjError as e:
        raise type(e)(str(e) + ' at ' + file)


def config_flavor_file(name, directory, flavor=None) -> ConfigObj:
    """
    Loads a specialization of a config file, which need not exist.
    :param name:    The name of the base configuration
    :param flavor: The name of the specialization.
    """
    return load_config_file_base(config_filename(config_flavor(name, flavor), directory), False)


def map_os_name(name):
    """
    >>> map_os_name('Linux')
    'linux'
    >>> map_os_name("Darwin")
    'osx'
    """
    name = name.lower()
    if name == 'darwin':
        name = 'osx'
    return name


def os_name():
    return map_os_name(platform.system())


def user_config_file(name):
    return os.path.expanduser('~/' + name + config_extension)


def load_config(name, directory) -> ConfigObj:
    """
    Loads, merges and validates all the configuration files that relate to the given name.
    :param name: the base name of the configuration files
    :param directory: the location of the configuration files
    :return: the validated configuration, with defaults filled in from the schema
    :raises ConfigObjError: if the merged configuration fails validation
    """
    schema = config_filename(config_flavor(name, 'schema'), directory)
    config = ConfigObj(configspec=schema if os.path.exists(schema) else None)
    config.merge(config_flavor_file(name, directory, 'default'))
    config.merge(config_flavor_file(name, directory, os_name()))
    config.merge(load_config_file_base(user_config_file(name), must_exist=False))
    config.merge(config_flavor_file(name, directory))

    if config.configspec is None:
        return config
    result = config.validate(Validator())
    if result is not True:
        raise ConfigObjError("the config file %s failed validation %s" % (name, result))
    return config


def load_settings(directory=None, name=settings_name) -> ConfigObj:
    """ Loads this package's settings, from its own directory unless another is given. """
    return load_config(name, directory or settings_directory)


def fetch_conf_path(conf: Section, path):
    """
    Retrieves the named configuration section
    :param conf:        The root configuration
    :param path:   An iterable that lists the names of the sections to resolve
    :return: The configuration section identified by the path, or None if there is no such section
    """
    for p in path:
        conf = conf.get(p, None)
        if conf is None:
            return None
    return conf


def apply_conf_path(conf: Section, name_parts, target):
    """
    Applies a configuration section to a given target object
    :param conf:        The root configuration object
    :param name_parts:  The path of the section to apply
    :param target:      The target object that receives the configured values
    """
    conf = fetch_conf_path(conf, name_parts)
    if conf:
        apply_conf(conf, target)


def apply_conf(conf: Section, target):
    """
    Applies the values in a configuration section to a target object, by setting each attribute
    of the target that has the same name as a value.
    """
    for k, v in conf.items():
        if hasattr(target, k):
            setattr(target, k, v)
