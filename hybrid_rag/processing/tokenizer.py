"""Model tokenizer used to measure chunk sizes."""

from typing import Protocol

import tiktoken


class Tokenizer(Protocol):
    """Anything that can turn text into token IDs and back."""

    def encode(self, text: str) -> list[int]: ...

    def decode(self, tokens: list[int]) -> str: ...


class TiktokenTokenizer:
    """tiktoken-backed tokenizer, matching the OpenAI model family.

    The encoding is loaded on first use.
    """

    def __init__(self, encoding_name: str = "cl100k_base"):
        self.encoding_name = encoding_name
        self._encoding: tiktoken.Encoding | None = None

    @property
    def encoding(self) -> tiktoken.Encoding:
        if self._encoding is None:
            self._encoding = tiktoken.get_encoding(self.encoding_name)
        return self._encoding

    def encode(self, text: str) -> list[int]:
        # Special-token strings inside PDFs are plain text here
        return self.encoding.encode(text, disallowed_special=())

    def decode(self, tokens: list[int]) -> str:
        return self.encoding.decode(tokens)
