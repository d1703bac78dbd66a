"""Ask the model which schema field a natural-language question refers to."""

import json
import logging

from langchain_core.exceptions import OutputParserException
from langchain_core.output_parsers import PydanticOutputParser
from langchain_core.runnables import Runnable

from errors import MatchError
from models import FieldMatch
from prompts import FIELD_MATCHING_OUTPUT_SCHEMA, SCHEMA_MATCHING_PROMPT
from schema_builder import ExtractionSchema

logger = logging.getLogger(__name__)


def build_matching_chain(llm: Runnable) -> Runnable:
    return SCHEMA_MATCHING_PROMPT | llm | PydanticOutputParser(pydantic_object=FieldMatch)


async def match_field(question: str, schema: ExtractionSchema, llm: Runnable) -> str:
    """Return the schema field name that best matches ``question``."""
    try:
        match: FieldMatch = await build_matching_chain(llm).ainvoke({
            # Required list is left empty so no field is favoured
            "schema": json.dumps(schema.json_schema(required=[])),
            "output_schema": FIELD_MATCHING_OUTPUT_SCHEMA,
            "question": question,
        })
    except OutputParserException as e:
        raise MatchError(f"Field matcher reply is not a field_name object for question {question!r}: {e}") from e

    if match.field_name not in schema:
        raise MatchError(f"Field matcher picked unknown field {match.field_name!r} for question {question!r}")

    logger.info("Matched question %r to field %s", question, match.field_name)
    return match.field_name
