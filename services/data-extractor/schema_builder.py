"""Build the per-request extraction schema from field names and descriptions.

Each field becomes an optional string slot on a dynamically created pydantic
model, so the model's JSON Schema can be embedded in prompts and the same
model backs the output parser that validates what the language model returns.
"""

import json
import logging
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, create_model

from errors import ValidationError
from models import FieldDescriptor
from prompts import FORMAT_INSTRUCTIONS, SCOPED_FORMAT_INSTRUCTIONS

logger = logging.getLogger(__name__)


class _ExtractionBase(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)


class ExtractionSchema:
    """Immutable mapping of field name -> optional described string slot."""

    def __init__(self, fields: list[FieldDescriptor]):
        self._fields = tuple(fields)
        # Attributes are positional, the field name is the alias: names need not
        # be identifiers and may shadow BaseModel members.
        slots: dict[str, Any] = {
            f"field_{i}": (Optional[str], Field(default=None, alias=f.name, description=f.description))
            for i, f in enumerate(self._fields)
        }
        self._model: type[BaseModel] = create_model("ExtractionSchema", __base__=_ExtractionBase, **slots)

    @property
    def model(self) -> type[BaseModel]:
        return self._model

    @property
    def fields(self) -> tuple[FieldDescriptor, ...]:
        return self._fields

    @property
    def field_names(self) -> list[str]:
        return [f.name for f in self._fields]

    def __contains__(self, name: object) -> bool:
        return name in self.field_names

    def json_schema(self, required: list[str] | None = None) -> dict:
        """Return the JSON Schema with an explicit ``required`` list (empty by default)."""
        schema = self._model.model_json_schema(by_alias=True)
        schema.pop("title", None)
        for prop in schema.get("properties", {}).values():
            prop.pop("title", None)
            prop.pop("default", None)
        schema["required"] = list(required or [])
        return schema

    def format_instructions(self, required: list[str] | None = None) -> str:
        """Answer-step instructions, scoped to ``required`` fields when given."""
        if not required:
            return FORMAT_INSTRUCTIONS.format(schema=json.dumps(self.json_schema()))
        return SCOPED_FORMAT_INSTRUCTIONS.format(
            schema=json.dumps(self.json_schema(required)),
            required=json.dumps(list(required)),
        )


def build_schema(names: list[str], descriptions: list[str]) -> ExtractionSchema:
    """Build an ExtractionSchema from parallel name/description lists."""
    if len(names) != len(descriptions):
        raise ValidationError(
            f"dataFields and dataFieldsDescription must have the same length "
            f"({len(names)} != {len(descriptions)})"
        )
    if not names:
        raise ValidationError("At least one data field is required")

    seen: set[str] = set()
    fields = []
    for name, description in zip(names, descriptions):
        if not name.strip():
            raise ValidationError("Data field names must not be blank")
        # Names are returned as result keys, so they are never rewritten
        if name != name.strip():
            raise ValidationError(f"Data field name has surrounding whitespace: {name!r}")
        if name in seen:
            raise ValidationError(f"Duplicate data field name: {name}")
        seen.add(name)
        fields.append(FieldDescriptor(name=name, description=description))

    logger.info("Built extraction schema with %d fields", len(fields))
    return ExtractionSchema(fields)
