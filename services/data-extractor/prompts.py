"""Prompt templates for question rewriting, field matching, answering and repair.

All templates are f-string ``PromptTemplate``s; literal JSON braces are doubled.
"""

from langchain_core.prompts import PromptTemplate

QUESTION_GENERATOR_PROMPT = PromptTemplate.from_template(
    """Given the following conversation and a follow up question, rephrase the follow up question to be a standalone question.

Chat History:
{chat_history}
Follow Up Input: {question}
Standalone question:"""
)

QA_PROMPT = PromptTemplate.from_template(
    """You are a helpful AI assistant. Use the following pieces of context to answer the question at the end.
If you don't know the answer, just say you don't know. DO NOT try to make up an answer.
If the question is not related to the context, politely respond that you are tuned to only answer questions that are related to the context.

Context:
{context}

Question:
{question}

Also use the format instructions provided here
Format Instructions:
{format_instructions}

Helpful answer:"""
)

_JSON_SCHEMA_PREAMBLE = """You must format your output as a JSON value that adheres to a given "JSON Schema" instance.

"JSON Schema" is a declarative language that allows you to annotate and validate JSON documents.

For example, the example "JSON Schema" instance {{"properties": {{"foo": {{"description": "a list of test words", "type": "array", "items": {{"type": "string"}}}}}}, "required": ["foo"]}}
would match an object with one required property, "foo". The "type" property specifies "foo" must be an "array", and the "description" property semantically describes it as "a list of test words". The items within "foo" must be strings.
Thus, the object {{"foo": ["bar", "baz"]}} is a well-formatted instance of this example "JSON Schema". The object {{"properties": {{"foo": ["bar", "baz"]}}}} is not well-formatted.

Your output will be parsed and type-checked according to the provided schema instance, so make sure all fields in your output match the schema exactly and there are no trailing commas!"""

_SCHEMA_BLOCK = """

Here is the JSON Schema instance your output must adhere to. Include the enclosing markdown codeblock:
```json
{schema}
```"""

FORMAT_INSTRUCTIONS = PromptTemplate.from_template(_JSON_SCHEMA_PREAMBLE + _SCHEMA_BLOCK)

SCOPED_FORMAT_INSTRUCTIONS = PromptTemplate.from_template(
    _JSON_SCHEMA_PREAMBLE + _SCHEMA_BLOCK + """

Just provide the required info here and not all fields defined in the schema above. "required": {required}
"""
)

FIELD_MATCHING_OUTPUT_SCHEMA = '{"field_name": "name of the field"}'

SCHEMA_MATCHING_PROMPT = PromptTemplate.from_template(
    """You are a helpful AI assistant that can match JSON data schema fields with a question. Here is a JSON schema, please let me know which field in the following schema matches the best with the question asked.

JSON data schema:
```json
{schema}
```

Please provide the accurate and exact field name as answer. Also use the format instructions provided here for the answer.

Format Instructions:
""" + _JSON_SCHEMA_PREAMBLE + _SCHEMA_BLOCK.replace("{schema}", "{output_schema}") + """

Question: {question}

Answer:"""
)

FIX_PROMPT = PromptTemplate.from_template(
    """Instructions:
--------------
{instructions}
--------------
Completion:
--------------
{completion}
--------------

Above, the Completion did not satisfy the constraints given in the Instructions.
Error:
--------------
{error}
--------------

Please try again. Please only respond with an answer that satisfies the constraints laid out in the Instructions:"""
)
