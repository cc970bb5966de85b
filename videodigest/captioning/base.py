from dataclasses import dataclass, field
from typing import Protocol


@dataclass(frozen=True)
class TokenUsage:
    input_tokens: int = 0
    output_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens


@dataclass(frozen=True)
class InferenceResponse:
    text: str
    usage: TokenUsage = field(default_factory=TokenUsage)


class InferenceClient(Protocol):
    """
    A multimodal chat model endpoint.

    messages are chat dicts: {"role": "user", "content": str, "images": [b64, ...]}
    where "images" is optional. Implementations raise InferenceError when the
    call itself fails; parsing the returned text is the caller's concern.
    """

    def invoke(self, system_prompt: str, messages: list[dict]) -> InferenceResponse:
        ...
