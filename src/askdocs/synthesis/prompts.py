"""Prompt templates for grounded answer synthesis.

Keeping prompts in one place makes them easy to audit and version.
"""

from __future__ import annotations

from langchain_core.messages import BaseMessage, HumanMessage, SystemMessage

UNKNOWN_ANSWER = "I don't know based on the provided documents."

SYSTEM_PROMPT = f"""\
You are a concise assistant. Use ONLY the provided documents.
If the answer isn't in them, say "{UNKNOWN_ANSWER}"
"""


def build_answer_prompt(question: str, context: str) -> list[BaseMessage]:
    """Assemble the two-message prompt for a grounded answer.

    Parameters
    ----------
    question:
        The user question.
    context:
        Output of :func:`askdocs.retrieval.context.assemble_context`.

    Returns
    -------
    list[BaseMessage]
        System instruction followed by the user message.
    """
    user_msg = f"Documents:\n\n{context}\n\nQuestion: {question}\nAnswer:"
    return [
        SystemMessage(content=SYSTEM_PROMPT),
        HumanMessage(content=user_msg),
    ]
