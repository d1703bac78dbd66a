"""Parse model output into schema-conformant JSON, with one repair attempt."""

import logging
from typing import Any

from langchain.output_parsers import OutputFixingParser
from langchain_core.exceptions import OutputParserException
from langchain_core.output_parsers import BaseOutputParser, PydanticOutputParser
from langchain_core.outputs import Generation
from langchain_core.runnables import Runnable

from errors import ParseError
from prompts import FIX_PROMPT
from schema_builder import ExtractionSchema

logger = logging.getLogger(__name__)

# One repair call per failed parse, never more
MAX_REPAIRS = 1


class ExtractionOutputParser(PydanticOutputParser):
    """PydanticOutputParser returning a plain mapping keyed by field name.

    Unknown keys are dropped; keys the model did not set are omitted.
    """

    def parse_result(self, result: list[Generation], *, partial: bool = False) -> Any:
        instance = super().parse_result(result, partial=partial)
        if instance is None:
            return None
        return instance.model_dump(by_alias=True, exclude_unset=True)


def build_output_parser(schema: ExtractionSchema, llm: Runnable) -> OutputFixingParser:
    """Schema parser wrapped so a failed parse triggers exactly one repair call."""
    return OutputFixingParser.from_llm(
        llm=llm,
        parser=ExtractionOutputParser(pydantic_object=schema.model),
        prompt=FIX_PROMPT,
        max_retries=MAX_REPAIRS,
    )


async def parse_output(parser: BaseOutputParser, text: str) -> Any:
    """Run ``parser`` on model text, raising ParseError if it gives up."""
    try:
        return await parser.aparse(text)
    except OutputParserException as e:
        logger.warning("Model output could not be parsed: %s", str(e)[:200])
        raise ParseError(f"Model output could not be parsed: {e}", llm_output=e.llm_output or text) from e
