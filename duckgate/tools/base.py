"""Base class for agent tools."""

from abc import ABC, abstractmethod
from typing import Any


class Tool(ABC):
    """
    Abstract base class for agent tools.

    Tools describe themselves with a JSON schema so callers can validate
    arguments before ``execute`` runs.
    """

    _TYPE_MAP: dict[str, type | tuple[type, ...]] = {
        "string": str,
        "integer": int,
        "number": (int, float),
        "boolean": bool,
        "array": list,
        "object": dict,
    }

    @property
    @abstractmethod
    def name(self) -> str:
        """Tool name used in function calls."""

    @property
    @abstractmethod
    def description(self) -> str:
        """Description of what the tool does."""

    @property
    @abstractmethod
    def parameters(self) -> dict[str, Any]:
        """JSON Schema for tool parameters."""

    @abstractmethod
    async def execute(self, **kwargs: Any) -> str:
        """Run the tool and return a text result."""

    def validate_params(self, params: dict[str, Any]) -> list[str]:
        """Validate params against the schema; returns error strings (empty if valid)."""
        schema = self.parameters or {}
        if schema.get("type", "object") != "object":
            raise ValueError(f"Schema must be object type, got {schema.get('type')!r}")
        return self._validate(params, {**schema, "type": "object"}, "")

    def _validate(self, value: Any, schema: dict[str, Any], path: str) -> list[str]:
        kind = schema.get("type")
        label = path or "parameter"

        expected = self._TYPE_MAP.get(kind) if isinstance(kind, str) else None
        if expected is not None:
            is_bool = isinstance(value, bool)
            if not isinstance(value, expected) or (kind in ("integer", "number") and is_bool):
                return [f"{label} should be {kind}"]

        errors: list[str] = []
        if "enum" in schema and value not in schema["enum"]:
            errors.append(f"{label} must be one of {schema['enum']}")

        if kind in ("integer", "number"):
            if "minimum" in schema and value < schema["minimum"]:
                errors.append(f"{label} must be >= {schema['minimum']}")
            if "maximum" in schema and value > schema["maximum"]:
                errors.append(f"{label} must be <= {schema['maximum']}")

        if kind == "string":
            if "minLength" in schema and len(value) < schema["minLength"]:
                errors.append(f"{label} must be at least {schema['minLength']} chars")
            if "maxLength" in schema and len(value) > schema["maxLength"]:
                errors.append(f"{label} must be at most {schema['maxLength']} chars")

        if kind == "object":
            properties = schema.get("properties", {})
            for key in schema.get("required", []):
                if key not in value:
                    errors.append(f"missing required {f'{path}.{key}' if path else key}")
            extra = schema.get("additionalProperties")
            for key, item in value.items():
                child = f"{path}.{key}" if path else key
                if key in properties:
                    errors.extend(self._validate(item, properties[key], child))
                elif isinstance(extra, dict):
                    errors.extend(self._validate(item, extra, child))

        if kind == "array":
            if "maxItems" in schema and len(value) > schema["maxItems"]:
                errors.append(f"{label} must have at most {schema['maxItems']} items")
            if "items" in schema:
                for index, item in enumerate(value):
                    errors.extend(self._validate(item, schema["items"], f"{label}[{index}]"))

        return errors

    def to_schema(self) -> dict[str, Any]:
        """Tool definition in OpenAI function format."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }
