"""
Configuration Schema System.

This module declares the fields of the ``[plinth]`` config table and checks
loaded values against them.

Key features:
- Typed fields with defaults, descriptions and allowed choices
- Element types for list fields (suffix lists, discovery paths)
- Missing fields fall back to their defaults; unknown fields are rejected
"""

from dataclasses import dataclass
from typing import Any

from plinth.errors import ConfigLoadError, PlinthError


class SchemaError(PlinthError):
    """Raised when a schema field is defined inconsistently."""

    pass


class ValidationError(ConfigLoadError):
    """Raised when a config file value does not fit its field."""

    pass


@dataclass
class ConfigField:
    """
    One entry of a config table.

    Attributes:
        type_: Python type the TOML value must load as
        default: Value used when the file omits the field
        description: Comment written above the field by ``--init``
        choices: Allowed values (optional)
        item_type: Element type for list fields (optional)
    """

    type_: type
    default: Any
    description: str = ""
    choices: list[Any] | None = None
    item_type: type | None = None

    def __post_init__(self):
        if not isinstance(self.default, self.type_):
            raise SchemaError(
                f"Default value {self.default!r} does not match type {self.type_.__name__}"
            )
        if self.item_type is not None and self.type_ is not list:
            raise SchemaError("item_type is only supported for list fields")
        if self.choices is not None and self.default not in self.choices:
            raise SchemaError(
                f"Default value {self.default!r} not in choices {self.choices}"
            )

    def validate(self, value: Any) -> None:
        """
        Check a loaded value.

        Raises:
            ValidationError: If the type, choice or list items are wrong
        """
        # TOML booleans must not pass for integers
        is_bool_mismatch = isinstance(value, bool) and self.type_ is not bool
        if is_bool_mismatch or not isinstance(value, self.type_):
            raise ValidationError(
                f"Expected type {self.type_.__name__}, got {type(value).__name__}"
            )

        if self.choices is not None and value not in self.choices:
            raise ValidationError(f"Value {value!r} not in allowed choices {self.choices}")

        if self.item_type is not None:
            bad = [item for item in value if not isinstance(item, self.item_type)]
            if bad:
                raise ValidationError(
                    f"List item {bad[0]!r} is not of type {self.item_type.__name__}"
                )


def schema_defaults(schema: dict[str, ConfigField]) -> dict[str, Any]:
    """Default value of every field; list defaults are copied."""
    return {
        name: list(f.default) if isinstance(f.default, list) else f.default
        for name, f in schema.items()
    }


def validate_config(config: dict[str, Any], schema: dict[str, ConfigField]) -> dict[str, Any]:
    """
    Check a loaded table against a schema and fill in omitted fields.

    Args:
        config: Table as read from the TOML file
        schema: Field name -> ConfigField

    Returns:
        A value for every schema field

    Raises:
        ValidationError: On an unknown field or a value that does not fit
    """
    unknown = [key for key in config if key not in schema]
    if unknown:
        raise ValidationError(f"Unknown configuration field: {unknown[0]}")

    resolved = schema_defaults(schema)
    for name, value in config.items():
        try:
            schema[name].validate(value)
        except ValidationError as e:
            raise ValidationError(f"Field '{name}': {e}") from e
        resolved[name] = value
    return resolved
