"""
Synthesis — grounded answers from a chat-completion model.

Public API
----------
- :class:`AnswerSynthesizer` — builds the prompt and calls the model.
- :func:`get_llm` — the configured ``ChatOpenAI`` client.
- :func:`build_answer_prompt` — the two-message grounding prompt.
"""

from askdocs.synthesis.llm import get_llm
from askdocs.synthesis.prompts import SYSTEM_PROMPT, UNKNOWN_ANSWER, build_answer_prompt
from askdocs.synthesis.synthesizer import AnswerSynthesizer

__all__ = [
    "AnswerSynthesizer",
    "SYSTEM_PROMPT",
    "UNKNOWN_ANSWER",
    "build_answer_prompt",
    "get_llm",
]
