"""
Token counting service.

The upstream reports no usage, so counts are estimated at one token per four
characters, rounded up per message. Clients depend on these exact numbers;
keep the formula as is.
"""

import math
from typing import Iterable, Tuple

from loguru import logger


class TokenCounter:
    """Approximate token accounting for OpenAI-style usage blocks."""

    CHARS_PER_TOKEN = 4

    @classmethod
    def approximate_tokens(cls, text: str) -> int:
        return math.ceil(len(text) / cls.CHARS_PER_TOKEN)

    def count_prompt_tokens(self, messages: Iterable[str]) -> int:
        """Sum of per-message estimates."""
        return sum(self.approximate_tokens(content) for content in messages)

    def count_completion_tokens(self, completion: str) -> int:
        return self.approximate_tokens(completion)

    def count_total_tokens(self, messages: Iterable[str], completion: str) -> Tuple[int, int, int]:
        """
        Count tokens for both prompt and completion.

        Returns:
            Tuple of (prompt_tokens, completion_tokens, total_tokens)
        """
        prompt_tokens = self.count_prompt_tokens(messages)
        completion_tokens = self.count_completion_tokens(completion)
        total_tokens = prompt_tokens + completion_tokens

        logger.debug(f"Token estimate - prompt: {prompt_tokens}, completion: {completion_tokens}, total: {total_tokens}")
        return prompt_tokens, completion_tokens, total_tokens


token_counter = TokenCounter()
