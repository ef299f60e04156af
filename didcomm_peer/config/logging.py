"""Utilities related to logging."""

import io
import logging
from importlib import resources
from logging.config import fileConfig

DEFAULT_LOGGING_CONFIG_PATH = "didcomm_peer.config:default_logging_config.ini"


def load_resource(path: str, encoding: str = None):
    """Open a resource file located in a python package or the local filesystem.

    Args:
        path: The resource path in the form of `dir/file` or `package:dir/file`
        encoding: The text encoding, or None for a binary stream

    Returns:
        A file-like object representing the resource, or None if not found

    """
    components = path.rsplit(":", 1)
    try:
        if len(components) == 1:
            return open(components[0], encoding=encoding)
        package, resource = components
        bstream = resources.files(package).joinpath(resource).open("rb")
        if encoding:
            return io.TextIOWrapper(bstream, encoding=encoding)
        return bstream
    except (IOError, ModuleNotFoundError):
        return None


class LoggingConfigurator:
    """Utility class used to configure logging for a connection host process."""

    default_config_path = DEFAULT_LOGGING_CONFIG_PATH

    @classmethod
    def configure(
        cls,
        log_config_path: str = None,
        log_level: str = None,
        log_file: str = None,
    ):
        """Configure logger.

        Args:
            log_config_path: Optional path to a custom INI logging config
            log_level: Optional root log level name
            log_file: Optional file name to write logs to
        """
        log_config_path = log_config_path or cls.default_config_path
        log_config = load_resource(log_config_path, "utf-8")
        if log_config:
            with log_config:
                fileConfig(log_config, disable_existing_loggers=False)
        else:
            logging.basicConfig(level=logging.WARNING)
            logging.root.warning(f"Logging config file not found: {log_config_path}")

        if log_file:
            handler = logging.FileHandler(log_file, encoding="utf-8")
            if logging.root.handlers and logging.root.handlers[0].formatter:
                handler.setFormatter(logging.root.handlers[0].formatter)
            logging.root.addHandler(handler)

        if log_level:
            logging.root.setLevel(log_level.upper())
