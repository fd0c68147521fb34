"""Token cost estimation from the per-1M-token prices in settings.yaml."""

from config.config_loader import ModelConfig


def estimate_cost_usd(
    config: ModelConfig,
    *,
    input_tokens: int | None,
    output_tokens: int | None,
    total_tokens: int | None = None,
) -> float | None:
    """Estimate a call's cost in USD, or None when pricing or usage is unknown.

    With only a total token count, the whole total is charged at the input price.
    """
    if config.input_per_1m is None or config.output_per_1m is None:
        return None

    if input_tokens is not None and output_tokens is not None:
        return (
            (input_tokens / 1_000_000) * config.input_per_1m
            + (output_tokens / 1_000_000) * config.output_per_1m
        )

    if total_tokens is not None:
        return (total_tokens / 1_000_000) * config.input_per_1m
    return None
