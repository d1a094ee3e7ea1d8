from __future__ import annotations
from copy import deepcopy
import json
import os
import stat
import threading
from typing import Any, Callable, cast, Type, TypeVar

from .constants import HASH_ITERATIONS
from .logs import logs
from .networks import Mainnet


logger = logs.get_logger("config")


FINAL_CONFIG_VERSION = 1
LOCAL_STORAGE_FILENAME = "localstorage.json"

T = TypeVar('T')


class SimpleConfig:
    """
    The SimpleConfig class is responsible for handling operations involving
    configuration files.

    There are two different sources of possible configuration values:
        1. Command line options.
        2. User configuration (in the data directory)
    They are taken in order (1. overrides config options set in 2.)
    """

    def __init__(self, options: dict[str, Any]|None=None, path: str|None=None,
            read_user_config_function: Callable[[str|None], dict[str, Any]]|None=None) -> None:
        if options is None:
            options = {}

        # This lock needs to be acquired for updating and reading the config in
        # a thread-safe way.
        self.lock = threading.RLock()

        # The following function is there for dependency injection when testing.
        if read_user_config_function is None:
            read_user_config_function = read_user_config

        # The command line options
        self.cmdline_options = deepcopy(options)
        # don't allow to be set on CLI:
        self.cmdline_options.pop('config_version', None)

        self.path = path
        if self.path is not None:
            os.makedirs(self.path, exist_ok=True)
        self.user_config = read_user_config_function(self.path)
        if not self.user_config:
            self.user_config = {'config_version': FINAL_CONFIG_VERSION}
        self.get_config_version()

    def file_path(self, file_name: str) -> str|None:
        if self.path:
            return os.path.join(self.path, file_name)
        return None

    def set_key(self, key: str, value: Any, save: bool=True) -> None:
        if not self.is_modifiable(key):
            logger.warning("Not changing config key '%s' set on the command line", key)
            return
        self._set_key_in_user_config(key, value, save)

    def _set_key_in_user_config(self, key: str, value: Any, save: bool=True) -> None:
        with self.lock:
            if value is not None:
                self.user_config[key] = value
            else:
                self.user_config.pop(key, None)
            if save:
                self.save_user_config()

    def get(self, key: str, default: Any=None) -> Any|None:
        with self.lock:
            out = self.cmdline_options.get(key)
            if out is None:
                out = self.user_config.get(key, default)
        return out

    def get_optional_type(self, return_type: Type[T], key: str, default: T|None=None) -> T|None:
        with self.lock:
            value = self.cmdline_options.get(key)
            if value is None:
                value = self.user_config.get(key, default)
        assert value == default or isinstance(value, return_type)
        return cast(T, value)

    def get_explicit_type(self, return_type: Type[T], key: str, default: T) -> T:
        with self.lock:
            value: T|None = self.cmdline_options.get(key)
            if value is None:
                value = cast(T, self.user_config.get(key, default))
        assert isinstance(value, return_type)
        return value

    def get_config_version(self) -> int:
        config_version = self.get_explicit_type(int, 'config_version', 1)
        if config_version > FINAL_CONFIG_VERSION:
            logger.warning('WARNING: config version (%s) is higher than ours (%s)',
                             config_version, FINAL_CONFIG_VERSION)
        return config_version

    def is_modifiable(self, key: str) -> bool:
        return key not in self.cmdline_options

    def save_user_config(self) -> None:
        if not self.path:
            return
        path = os.path.join(self.path, "config")
        s = json.dumps(self.user_config, indent=4, sort_keys=True)
        with open(path, "w", encoding='utf-8') as f:
            f.write(s)
        os.chmod(path, stat.S_IREAD | stat.S_IWRITE)

    def get_network_name(self) -> str:
        return self.get_explicit_type(str, 'network', Mainnet.NAME)

    def get_hash_iterations(self) -> int:
        return self.get_explicit_type(int, 'hash_iterations', HASH_ITERATIONS)

    def get_wallet_directory_path(self) -> str|None:
        """
        The directory the per-wallet databases are kept in, or `None` if they are to be kept
        in memory.
        """
        path = self.get_optional_type(str, 'wallet_directory')
        if path is None and self.path:
            path = os.path.join(self.path, "wallets")
        return path

    def get_local_storage_path(self) -> str|None:
        return self.file_path(LOCAL_STORAGE_FILENAME)


def read_user_config(path: str|None) -> dict[str, Any]:
    """Parse and return the user config settings as a dictionary."""
    if not path:
        return {}
    config_path = os.path.join(path, "config")
    if not os.path.exists(config_path):
        return {}
    try:
        with open(config_path, "r", encoding='utf-8') as f:
            data = f.read()
        result = json.loads(data)
    except Exception:
        logger.exception("Cannot read config file %s.", config_path)
        return {}
    if not type(result) is dict:
        return {}
    return result
