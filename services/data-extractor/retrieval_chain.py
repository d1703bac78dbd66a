"""Conversational retrieval chain with a structured output parser.

Flow per call: (optional) rewrite the question against the chat history,
retrieve similar documents, stuff them into one prompt, answer, then parse the
answer with the configured output parser.
"""

import logging
from typing import Any, Sequence

from langchain.chains.combine_documents import create_stuff_documents_chain
from langchain_core.documents import Document
from langchain_core.output_parsers import BaseOutputParser, StrOutputParser
from langchain_core.prompts import BasePromptTemplate
from langchain_core.runnables import Runnable

from errors import AmbiguousOutputError, MissingKeyError
from models import ChainResult, ChatMessage, RetrievedDocument
from output_parser import parse_output
from prompts import QA_PROMPT, QUESTION_GENERATOR_PROMPT
from vector_store import Retriever

logger = logging.getLogger(__name__)

ChatHistory = str | Sequence[ChatMessage] | Sequence[Sequence[str]]


def get_chat_history_string(chat_history: ChatHistory) -> str:
    """Render chat history as ``Human:``/``Assistant:`` lines.

    Accepts a preformatted string, a list of ChatMessage, or a list of
    ``[human, ai]`` string pairs.
    """
    if isinstance(chat_history, str):
        return chat_history

    lines = []
    for turn in chat_history:
        if isinstance(turn, dict):
            turn = ChatMessage.model_validate(turn)
        if isinstance(turn, ChatMessage):
            if turn.role == "human":
                lines.append(f"Human: {turn.content}")
            elif turn.role == "ai":
                lines.append(f"Assistant: {turn.content}")
            else:
                lines.append(turn.content)
        else:
            human, ai = turn
            lines.append(f"Human: {human}")
            lines.append(f"Assistant: {ai}")
    return "\n".join(lines)


def _to_langchain(doc: RetrievedDocument) -> Document:
    return Document(page_content=doc.text, metadata=doc.metadata)


class ConversationalRetrievalChain:
    """Question rewrite -> retrieve -> stuffed answer -> parsed output."""

    input_key = "question"
    chat_history_key = "chat_history"
    format_instructions_key = "format_instructions"
    output_key = "text"

    def __init__(
        self,
        retriever: Retriever,
        combine_docs_chain: Runnable,
        question_generator: Runnable,
        output_parser: BaseOutputParser | None = None,
        return_source_documents: bool = False,
    ):
        self.retriever = retriever
        self.combine_docs_chain = combine_docs_chain
        self.question_generator = question_generator
        self.output_parser = output_parser or StrOutputParser()
        self.return_source_documents = return_source_documents

    @classmethod
    def from_llm(
        cls,
        llm: Runnable,
        retriever: Retriever,
        output_parser: BaseOutputParser | None = None,
        qa_prompt: BasePromptTemplate = QA_PROMPT,
        question_generator_prompt: BasePromptTemplate = QUESTION_GENERATOR_PROMPT,
        question_generator_llm: Runnable | None = None,
        return_source_documents: bool = False,
    ) -> "ConversationalRetrievalChain":
        return cls(
            retriever=retriever,
            combine_docs_chain=create_stuff_documents_chain(llm, qa_prompt),
            question_generator=question_generator_prompt | (question_generator_llm or llm) | StrOutputParser(),
            output_parser=output_parser,
            return_source_documents=return_source_documents,
        )

    async def _rewrite_question(self, question: str, chat_history: str) -> str:
        result = await self.question_generator.ainvoke(
            {"question": question, "chat_history": chat_history}
        )
        if isinstance(result, dict):
            if len(result) != 1:
                raise AmbiguousOutputError(
                    "Return from llm chain has multiple values, only single values supported."
                )
            result = next(iter(result.values()))
        new_question = str(result).strip()
        logger.info("Rewrote question %r -> %r", question, new_question)
        return new_question

    async def call(self, values: dict[str, Any]) -> ChainResult:
        if self.input_key not in values:
            raise MissingKeyError(f"Question key {self.input_key} not found.")
        if self.chat_history_key not in values:
            raise MissingKeyError(f"Chat history key {self.chat_history_key} not found.")

        question: str = values[self.input_key]
        chat_history = get_chat_history_string(values[self.chat_history_key])
        format_instructions: str = values.get(self.format_instructions_key, "")

        new_question = question
        if chat_history:
            new_question = await self._rewrite_question(question, chat_history)

        if new_question:
            docs = await self.retriever.get_relevant_documents(new_question)
        else:
            docs = []

        logger.info("Answering from %d documents", len(docs))
        text = await self.combine_docs_chain.ainvoke({
            "context": [_to_langchain(doc) for doc in docs],
            "question": new_question,
            "format_instructions": format_instructions,
        })
        parsed = await parse_output(self.output_parser, text)
        if not isinstance(parsed, dict):
            parsed = {self.output_key: parsed}

        return ChainResult(
            answer=parsed,
            source_documents=docs if self.return_source_documents else None,
        )
