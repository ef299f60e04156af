"""Connection settings."""

from typing import Any, Iterator, Mapping, Optional

from ..core.error import BaseError
from ..defaults import DEFAULT_SETTINGS


class SettingsError(BaseError):
    """The base exception raised for invalid settings."""


class Settings(Mapping[str, Any]):
    """
    Settings shared by the connection and its transports.

    Values not supplied by the caller fall back to the package defaults.
    """

    def __init__(self, values: Mapping[str, Any] = None):
        """Initialize a Settings object.

        Args:
            values: An optional dictionary of settings overriding the defaults
        """
        self._values = dict(DEFAULT_SETTINGS)
        if values:
            self._values.update(values)

    @classmethod
    def coerce(cls, values: Optional[Mapping[str, Any]]) -> "Settings":
        """Return a Settings instance for a mapping, a Settings or None."""
        if isinstance(values, Settings):
            return values
        return cls(values)

    def get_value(self, *var_names, default: Any = None) -> Any:
        """Fetch a setting.

        Args:
            var_names: A list of variable name alternatives
            default: The default value to return if none are defined
        """
        for k in var_names:
            if k in self._values:
                return self._values[k]
        return default

    def get_bool(self, *var_names, default: Optional[bool] = None) -> Optional[bool]:
        """Fetch a setting as a boolean value."""
        value = self.get_value(*var_names, default=default)
        if value is not None:
            value = bool(value and value not in ("false", "False", "0"))
        return value

    def get_int(self, *var_names, default: Optional[int] = None) -> Optional[int]:
        """Fetch a setting as an integer value."""
        value = self.get_value(*var_names, default=default)
        if value is not None:
            value = int(value)
        return value

    def get_float(
        self, *var_names, default: Optional[float] = None
    ) -> Optional[float]:
        """Fetch a setting as a float value."""
        value = self.get_value(*var_names, default=default)
        if value is not None:
            value = float(value)
        return value

    def get_str(self, *var_names, default: Optional[str] = None) -> Optional[str]:
        """Fetch a setting as a string value."""
        value = self.get_value(*var_names, default=default)
        if value is not None:
            value = str(value)
        return value

    def get_timeout(self, var_name: str) -> Optional[float]:
        """Fetch a timeout in seconds; zero or negative values disable it."""
        try:
            value = self.get_float(var_name)
        except (TypeError, ValueError) as err:
            raise SettingsError(f"Invalid timeout value for {var_name}") from err
        if value is not None and value <= 0:
            return None
        return value

    def set_value(self, var_name: str, value: Any):
        """Add a setting."""
        if not isinstance(var_name, str):
            raise TypeError("Setting name must be a string")
        if not var_name:
            raise ValueError("Setting name must be non-empty")
        self._values[var_name] = value

    def extend(self, other: Mapping[str, Any]) -> "Settings":
        """Merge another mapping to produce a new settings instance."""
        vals = self._values.copy()
        vals.update(other)
        return Settings(vals)

    def __getitem__(self, index):
        """Fetch as an array index."""
        if not isinstance(index, str):
            raise TypeError(f"Index {index} must be a string")
        missing = object()
        result = self.get_value(index, default=missing)
        if result is missing:
            raise KeyError("Undefined index: {}".format(index))
        return result

    def __setitem__(self, index, value):
        """Implement update operator for array index."""
        self.set_value(index, value)

    def __iter__(self) -> Iterator:
        """Iterate settings keys."""
        return iter(self._values)

    def __len__(self):
        """Fetch the length of the mapping."""
        return len(self._values)

    def __repr__(self) -> str:
        """Provide a human readable representation of this object."""
        items = ("{}={}".format(k, self[k]) for k in self)
        return "<{}({})>".format(self.__class__.__name__, ", ".join(items))
