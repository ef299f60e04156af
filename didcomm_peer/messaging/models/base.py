"""Base classes for Models and Schemas."""

import json
import logging
import sys
from abc import ABC
from typing import Mapping, Optional, Type, TypeVar, Union

from marshmallow import EXCLUDE, Schema, ValidationError, post_dump, post_load

from ...core.error import BaseError

LOGGER = logging.getLogger(__name__)


def resolve_class(the_cls, relative_cls: Optional[type] = None) -> type:
    """
    Resolve a class.

    Args:
        the_cls: The class to resolve, or its name in the module of `relative_cls`
        relative_cls: Relative class to resolve from

    Returns:
        The resolved class

    """
    if isinstance(the_cls, type):
        return the_cls
    if isinstance(the_cls, str) and relative_cls:
        module = sys.modules.get(relative_cls.__module__)
        resolved = getattr(module, the_cls, None)
        if isinstance(resolved, type):
            return resolved
    raise TypeError(
        f"Could not resolve class from {the_cls}; incorrect type {type(the_cls)}"
    )


def resolve_meta_property(obj, prop_name: str, defval=None):
    """
    Resolve a meta property.

    Args:
        obj: The instance or class to inspect
        prop_name: The property to resolve
        defval: The default value

    Returns:
        The meta property

    """
    cls = obj if isinstance(obj, type) else obj.__class__
    for base in cls.__mro__:
        Meta = base.__dict__.get("Meta")
        if Meta and hasattr(Meta, prop_name):
            return getattr(Meta, prop_name)
    return defval


class BaseModelError(BaseError):
    """Base exception class for base model errors."""


ModelType = TypeVar("ModelType", bound="BaseModel")


class BaseModel(ABC):
    """Base model that provides convenience methods."""

    class Meta:
        """BaseModel metadata."""

        schema_class = None

    def __init__(self):
        """
        Initialize BaseModel.

        Raises:
            TypeError: If schema_class is not set on Meta

        """
        if not self.Meta.schema_class:
            raise TypeError(
                "Can't instantiate abstract class {} with no schema_class".format(
                    self.__class__.__name__
                )
            )

    @classmethod
    def _get_schema_class(cls) -> Type["BaseModelSchema"]:
        """Get the schema class."""
        resolved = resolve_class(cls.Meta.schema_class, cls)
        if issubclass(resolved, BaseModelSchema):
            return resolved
        raise TypeError(
            f"Resolved class is not a subclass of BaseModelSchema: {resolved}"
        )

    @property
    def Schema(self) -> Type["BaseModelSchema"]:
        """Accessor for the model's schema class."""
        return self._get_schema_class()

    @classmethod
    def deserialize(
        cls: Type[ModelType],
        obj: Union[str, Mapping],
        *,
        unknown: Optional[str] = None,
    ) -> ModelType:
        """
        Convert from JSON representation to a model instance.

        Args:
            obj: The dict or JSON string to load into a model instance
            unknown: Behaviour for unknown attributes

        Returns:
            A model instance for this data

        Raises:
            BaseModelError: If the data fails schema validation

        """
        schema_cls = cls._get_schema_class()
        schema = schema_cls(
            unknown=unknown or resolve_meta_property(schema_cls, "unknown", EXCLUDE)
        )
        try:
            return schema.loads(obj) if isinstance(obj, str) else schema.load(obj)
        except (AttributeError, TypeError, ValueError, ValidationError) as err:
            LOGGER.exception(f"{cls.__name__} validation error:")
            raise BaseModelError(f"{cls.__name__} schema validation failed") from err

    def serialize(self, *, as_string: bool = False) -> Union[str, dict]:
        """
        Create a JSON-compatible dict representation of the model instance.

        Args:
            as_string: Return a string of JSON instead of a dict

        Returns:
            A dict representation of this model, or a JSON string if as_string is True

        """
        schema = self.Schema()
        try:
            return (
                schema.dumps(self, separators=(",", ":"))
                if as_string
                else schema.dump(self)
            )
        except (AttributeError, ValidationError) as err:
            LOGGER.exception(f"{self.__class__.__name__} serialization error:")
            raise BaseModelError(
                f"{self.__class__.__name__} schema validation failed"
            ) from err

    @classmethod
    def from_json(cls: Type[ModelType], json_repr: Union[str, bytes]) -> ModelType:
        """
        Parse a JSON string into a model instance.

        Raises:
            BaseModelError: If the value is not valid JSON

        """
        try:
            parsed = json.loads(json_repr)
        except (TypeError, ValueError) as err:
            LOGGER.exception(f"{cls.__name__} parse error:")
            raise BaseModelError(f"{cls.__name__} JSON parsing failed") from err
        return cls.deserialize(parsed)

    def to_json(self) -> str:
        """Create a JSON representation of the model instance."""
        return json.dumps(self.serialize())

    def __repr__(self) -> str:
        """
        Return a human readable representation of this class.

        Returns:
            A human readable string for this class

        """
        exclude = resolve_meta_property(self, "repr_exclude", [])
        items = (
            "{}={}".format(k, repr(v))
            for k, v in self.__dict__.items()
            if k not in exclude
        )
        return "<{}({})>".format(self.__class__.__name__, ", ".join(items))


class BaseModelSchema(Schema):
    """BaseModel schema."""

    class Meta:
        """BaseModelSchema metadata."""

        model_class = None
        skip_values = [None]

    def __init__(self, *args, **kwargs):
        """
        Initialize BaseModelSchema.

        Raises:
            TypeError: If model_class is not set on Meta

        """
        super().__init__(*args, **kwargs)
        if not self.Meta.model_class:
            raise TypeError(
                "Can't instantiate abstract class {} with no model_class".format(
                    self.__class__.__name__
                )
            )

    @property
    def Model(self) -> type:
        """Accessor for the schema's model class."""
        return resolve_class(self.Meta.model_class, self.__class__)

    @post_load
    def make_model(self, data: dict, **kwargs):
        """Return model instance after loading."""
        return self.Model(**data)

    @post_dump
    def remove_skipped_values(self, data, **kwargs):
        """Remove values that are are marked to skip."""
        skip_vals = resolve_meta_property(self, "skip_values", [])
        return {key: value for key, value in data.items() if value not in skip_vals}
