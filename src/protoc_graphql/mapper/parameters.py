"""Configuration parsed from the plugin parameter string."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

from protoc_graphql.errors import ParameterError
from protoc_graphql.mapper.naming import (
    lower_underscore_to_lower_camel,
    upper_camel_to_lower_camel,
)

INPUT_MODE_NONE = "none"
INPUT_MODE_SERVICE = "service"
INPUT_MODE_ALL = "all"
INPUT_MODES = (INPUT_MODE_NONE, INPUT_MODE_SERVICE, INPUT_MODE_ALL)

FIELD_NAME_DEFAULT = "lower_camel_case"
FIELD_NAME_PRESERVE = "preserve"
FIELD_NAMES = (FIELD_NAME_DEFAULT, FIELD_NAME_PRESERVE)

JS_64BIT_TYPE_STRING = "string"
JS_64BIT_TYPE_NUMBER = "number"
JS_64BIT_TYPES = (JS_64BIT_TYPE_STRING, JS_64BIT_TYPE_NUMBER)


def _preserve(name: str) -> str:
    return name


@dataclass(frozen=True)
class Parameters:
    timestamp_type_name: str = ""
    duration_type_name: str = ""
    struct_type_name: str = ""
    wrappers_as_null: bool = False
    input_mode: str = INPUT_MODE_SERVICE
    js_64bit_type: str = JS_64BIT_TYPE_STRING
    # None disables extending the root types; an empty prefix extends
    # Query, Mutation and Subscription themselves.
    root_type_prefix: Optional[str] = None
    field_name: str = FIELD_NAME_DEFAULT
    trim_prefix: str = ""
    options_path: str = ""

    @classmethod
    def parse(cls, parameter: str) -> Parameters:
        """Parse a comma separated list of key[=value] pairs.

        e.g. "timestamp=DateTime,null_wrappers,input_mode=all"
        """
        values = {}
        for part in parameter.split(","):
            if not part:
                continue

            key, _, value = part.partition("=")
            if key in ("timestamp", "duration", "struct"):
                if not value:
                    raise ParameterError(f"missing type for {key}")
                values[f"{key}_type_name"] = value
            elif key == "null_wrappers":
                values["wrappers_as_null"] = True
            elif key == "input_mode":
                values["input_mode"] = _choice(key, value, INPUT_MODES)
            elif key == "js_64bit_type":
                values["js_64bit_type"] = _choice(key, value, JS_64BIT_TYPES)
            elif key == "root_type_prefix":
                values["root_type_prefix"] = value
            elif key == "field_name":
                values["field_name"] = _choice(key, value, FIELD_NAMES)
            elif key == "trim_prefix":
                values["trim_prefix"] = value
            elif key == "options":
                if not value:
                    raise ParameterError("missing path for options")
                values["options_path"] = value
            else:
                raise ParameterError(f"unknown parameter: {key}")

        return cls(**values)

    @property
    def field_name_transformer(self) -> Callable[[str], str]:
        """Transformer for lower_underscore protobuf field names."""
        if self.field_name == FIELD_NAME_PRESERVE:
            return _preserve
        return lower_underscore_to_lower_camel

    @property
    def method_name_transformer(self) -> Callable[[str], str]:
        """Transformer for UpperCamel protobuf method and service names."""
        if self.field_name == FIELD_NAME_PRESERVE:
            return _preserve
        return upper_camel_to_lower_camel


def _choice(key: str, value: str, allowed) -> str:
    if value not in allowed:
        raise ParameterError(
            f"invalid value for {key}: {value!r}, expected one of {', '.join(allowed)}"
        )
    return value
