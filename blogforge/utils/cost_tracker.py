"""Cost tracking utilities for LLM API calls.

Tracks token usage per pipeline stage and estimates costs using
LiteLLM's pricing data.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

import litellm

from ..providers.base import UsageData

logger = logging.getLogger(__name__)

# Suppress verbose LiteLLM logging
logging.getLogger("LiteLLM").setLevel(logging.WARNING)


@dataclass
class StepCost:
    """Cost data for a single pipeline step."""

    step_name: str
    model: str
    input_tokens: int = 0
    output_tokens: int = 0
    cost_usd: float = 0.0
    call_count: int = 0
    unreported_calls: int = 0  # calls whose provider gave no token counts


@dataclass
class PipelineCosts:
    """Aggregate cost tracking for entire pipeline."""

    steps: dict[str, StepCost] = field(default_factory=dict)

    def add_usage(
        self,
        step_name: str,
        model: str,
        usage: Optional[UsageData],
    ) -> None:
        """Add usage from an API call to a step.

        Args:
            step_name: Name of the pipeline step (e.g., "research", "seo")
            model: Model identifier used for the call
            usage: Token usage, or None when the provider reported none
        """
        if step_name not in self.steps:
            self.steps[step_name] = StepCost(step_name=step_name, model=model)

        step = self.steps[step_name]
        step.call_count += 1

        if usage is None or usage.input_tokens is None or usage.output_tokens is None:
            step.unreported_calls += 1
            return

        step.input_tokens += usage.input_tokens
        step.output_tokens += usage.output_tokens
        step.cost_usd += calculate_cost(model, usage.input_tokens, usage.output_tokens)

    def total_cost(self) -> float:
        """Return total cost across all steps."""
        return sum(s.cost_usd for s in self.steps.values())

    def total_tokens(self) -> tuple[int, int]:
        """Return total (input_tokens, output_tokens) across all steps."""
        return (
            sum(s.input_tokens for s in self.steps.values()),
            sum(s.output_tokens for s in self.steps.values()),
        )

    def to_dict(self) -> dict:
        """Convert to dict for JSON serialization."""
        input_total, output_total = self.total_tokens()
        return {
            "total_cost_usd": round(self.total_cost(), 6),
            "total_input_tokens": input_total,
            "total_output_tokens": output_total,
            "steps": {
                name: {
                    "model": step.model,
                    "input_tokens": step.input_tokens,
                    "output_tokens": step.output_tokens,
                    "cost_usd": round(step.cost_usd, 6),
                    "call_count": step.call_count,
                    "unreported_calls": step.unreported_calls,
                }
                for name, step in self.steps.items()
            },
        }


def calculate_cost(model: str, input_tokens: int, output_tokens: int) -> float:
    """Calculate cost for an API call using LiteLLM pricing.

    Args:
        model: Model identifier (e.g., "gpt-4o", "gemini-2.5-flash")
        input_tokens: Number of input/prompt tokens
        output_tokens: Number of output/completion tokens

    Returns:
        Cost in USD, 0.0 for models LiteLLM has no pricing for (local models)
    """
    try:
        prompt_cost, completion_cost = litellm.cost_per_token(
            model=model,
            prompt_tokens=input_tokens,
            completion_tokens=output_tokens,
        )
    except Exception as e:
        logger.debug("No pricing for model %s: %s", model, e)
        return 0.0
    return (prompt_cost or 0.0) + (completion_cost or 0.0)
