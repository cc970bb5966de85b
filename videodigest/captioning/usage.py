from dataclasses import dataclass

from videodigest.captioning.base import TokenUsage


@dataclass(frozen=True)
class UsageReport:
    input_tokens: int
    output_tokens: int
    total_tokens: int
    call_count: int
    cost_usd: float

    def to_dict(self) -> dict:
        return {
            "input_tokens": self.input_tokens,
            "output_tokens": self.output_tokens,
            "total_tokens": self.total_tokens,
            "call_count": self.call_count,
            "cost_usd": round(self.cost_usd, 6),
        }


class UsageAccumulator:
    """
    Running token totals for one pipeline run.

    Totals only ever grow. Calls that raised before returning contribute
    nothing; calls that returned unusable text still count.
    """

    def __init__(self, input_cost_per_1k: float = 0.00095, output_cost_per_1k: float = 0.0038):
        self.input_cost_per_1k = input_cost_per_1k
        self.output_cost_per_1k = output_cost_per_1k
        self.input_tokens = 0
        self.output_tokens = 0
        self.call_count = 0

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens

    def record(self, usage: TokenUsage) -> None:
        self.input_tokens += max(usage.input_tokens, 0)
        self.output_tokens += max(usage.output_tokens, 0)
        self.call_count += 1

    def cost(self) -> float:
        return (
            self.input_tokens / 1000 * self.input_cost_per_1k
            + self.output_tokens / 1000 * self.output_cost_per_1k
        )

    def snapshot(self) -> UsageReport:
        return UsageReport(
            input_tokens=self.input_tokens,
            output_tokens=self.output_tokens,
            total_tokens=self.total_tokens,
            call_count=self.call_count,
            cost_usd=self.cost(),
        )
