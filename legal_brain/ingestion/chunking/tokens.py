"""
Token estimation shared by chunking and token accounting.

Token counts here are an approximation derived from character length,
not a tokenizer call: English text averages roughly four characters per
token. Chunk-size budgets and chunk ``token_count`` values both go through
this module so the two always agree. Swap ``estimate_tokens`` for an exact
tokenizer without touching the chunking contracts.
"""

import math

CHARS_PER_TOKEN = 4


def estimate_tokens(text: str) -> int:
    """Estimate the token count of ``text`` (ceil of chars / 4)."""
    return math.ceil(len(text) / CHARS_PER_TOKEN)


def tokens_to_chars(tokens: int) -> int:
    """Convert a token budget into a character budget."""
    return tokens * CHARS_PER_TOKEN
