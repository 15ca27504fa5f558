"""Tool input schemas — tagged field descriptors compiled once per tool.

Each field is one of :class:`StringField`, :class:`NumberField`,
:class:`BooleanField` or :class:`EnumField`, discriminated by ``kind``. A
:class:`ToolSchema` groups them, renders the JSON Schema advertised in
``tools/list`` and validates raw ``tools/call`` arguments into a coerced
dict.

Validation is strict: unknown keys are rejected, booleans never pass as
numbers, and every issue is reported at once.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from earnings_mcp.errors import ArgumentValidationError

_MISSING: Any = object()


class _FieldBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    description: str = ""
    required: bool = False
    default: Any = None

    def _base_schema(self) -> dict[str, Any]:
        schema: dict[str, Any] = {}
        if self.description:
            schema["description"] = self.description
        if self.default is not None:
            schema["default"] = self.default
        return schema


class StringField(_FieldBase):
    kind: Literal["string"] = "string"
    min_length: int | None = None
    max_length: int | None = None
    uppercase: bool = False

    def coerce(self, value: Any) -> tuple[Any, str | None]:
        if not isinstance(value, str):
            return None, f"expected string, got {_json_type(value)}"
        if self.uppercase:
            value = value.strip().upper()
        if self.min_length is not None and len(value) < self.min_length:
            return None, f"must be at least {self.min_length} characters"
        if self.max_length is not None and len(value) > self.max_length:
            return None, f"must be at most {self.max_length} characters"
        return value, None

    def json_schema(self) -> dict[str, Any]:
        schema = {"type": "string", **self._base_schema()}
        if self.min_length is not None:
            schema["minLength"] = self.min_length
        if self.max_length is not None:
            schema["maxLength"] = self.max_length
        return schema


class NumberField(_FieldBase):
    kind: Literal["number"] = "number"
    integer: bool = False
    minimum: int | float | None = None
    maximum: int | float | None = None
    exclusive_minimum: int | float | None = None

    def coerce(self, value: Any) -> tuple[Any, str | None]:
        # bool is an int subclass; JSON true/false are not numbers.
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return None, f"expected {self._type_name()}, got {_json_type(value)}"
        if self.integer:
            if isinstance(value, float):
                if not value.is_integer():
                    return None, "expected integer, got a fractional number"
                value = int(value)
        if self.minimum is not None and value < self.minimum:
            return None, f"must be >= {_fmt_bound(self.minimum)}"
        if self.exclusive_minimum is not None and value <= self.exclusive_minimum:
            return None, f"must be > {_fmt_bound(self.exclusive_minimum)}"
        if self.maximum is not None and value > self.maximum:
            return None, f"must be <= {_fmt_bound(self.maximum)}"
        return value, None

    def json_schema(self) -> dict[str, Any]:
        schema = {"type": self._type_name(), **self._base_schema()}
        if self.minimum is not None:
            schema["minimum"] = self.minimum
        if self.exclusive_minimum is not None:
            schema["exclusiveMinimum"] = self.exclusive_minimum
        if self.maximum is not None:
            schema["maximum"] = self.maximum
        return schema

    def _type_name(self) -> str:
        return "integer" if self.integer else "number"


class BooleanField(_FieldBase):
    kind: Literal["boolean"] = "boolean"

    def coerce(self, value: Any) -> tuple[Any, str | None]:
        if not isinstance(value, bool):
            return None, f"expected boolean, got {_json_type(value)}"
        return value, None

    def json_schema(self) -> dict[str, Any]:
        return {"type": "boolean", **self._base_schema()}


class EnumField(_FieldBase):
    kind: Literal["enum"] = "enum"
    choices: tuple[str, ...]

    def coerce(self, value: Any) -> tuple[Any, str | None]:
        if value not in self.choices:
            allowed = ", ".join(repr(c) for c in self.choices)
            return None, f"must be one of {allowed}"
        return value, None

    def json_schema(self) -> dict[str, Any]:
        return {"type": "string", "enum": list(self.choices), **self._base_schema()}


FieldSpec = Annotated[
    StringField | NumberField | BooleanField | EnumField,
    Field(discriminator="kind"),
]


class ToolSchema(BaseModel):
    """The compiled input schema of one tool."""

    model_config = ConfigDict(frozen=True)

    params: dict[str, FieldSpec] = {}

    def validate_arguments(self, tool_name: str, raw: Any) -> dict[str, Any]:
        """Validate and coerce *raw* arguments.

        Raises:
            ArgumentValidationError: Listing every problem found.
        """
        if raw is None:
            raw = {}
        if not isinstance(raw, dict):
            raise ArgumentValidationError(
                tool_name, [f"arguments must be an object, got {_json_type(raw)}"]
            )

        issues: list[str] = []
        coerced: dict[str, Any] = {}

        for key in raw:
            if key not in self.params:
                issues.append(f"{key}: unknown field")

        for name, spec in self.params.items():
            value = raw.get(name, _MISSING)
            if value is _MISSING or value is None:
                if spec.required:
                    issues.append(f"{name}: required")
                elif spec.default is not None:
                    coerced[name] = spec.default
                else:
                    coerced[name] = None
                continue
            result, problem = spec.coerce(value)
            if problem is not None:
                issues.append(f"{name}: {problem}")
            else:
                coerced[name] = result

        if issues:
            raise ArgumentValidationError(tool_name, issues)
        return coerced

    def json_schema(self) -> dict[str, Any]:
        """Render the JSON Schema object advertised in ``tools/list``."""
        return {
            "type": "object",
            "properties": {name: spec.json_schema() for name, spec in self.params.items()},
            "required": [name for name, spec in self.params.items() if spec.required],
            "additionalProperties": False,
        }


# ---------------------------------------------------------------------------
# Field presets shared by the tool catalog
# ---------------------------------------------------------------------------

RESPONSE_FORMATS = ("markdown", "json")


def response_format_field() -> EnumField:
    return EnumField(
        choices=RESPONSE_FORMATS,
        default="markdown",
        description="Output format: 'markdown' for human-readable or 'json' for structured data",
    )


def symbol_field(description: str = "Stock ticker symbol (e.g., AAPL, MSFT, GOOGL)") -> StringField:
    return StringField(
        min_length=1,
        max_length=10,
        uppercase=True,
        required=True,
        description=description,
    )


def group_id_field(description: str = "Portfolio/group ID") -> NumberField:
    return NumberField(integer=True, exclusive_minimum=0, required=True, description=description)


def question_field(description: str = "Optional specific question") -> StringField:
    return StringField(min_length=5, max_length=500, description=description)


def _json_type(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def _fmt_bound(bound: float) -> str:
    return str(int(bound)) if float(bound).is_integer() else str(bound)
