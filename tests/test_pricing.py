"""Tests for compare_agent/pricing.py."""

import pytest

from compare_agent.pricing import estimate_cost_usd


def test_cost_from_input_and_output(sample_model_config):
    cost = estimate_cost_usd(sample_model_config, input_tokens=1_000_000, output_tokens=500_000)
    assert cost == pytest.approx(1.0 + 1.0)


def test_cost_small_call(sample_model_config):
    cost = estimate_cost_usd(sample_model_config, input_tokens=100, output_tokens=50)
    assert cost == pytest.approx(0.0001 + 0.0001)


def test_total_only_charged_at_input_price(sample_model_config):
    cost = estimate_cost_usd(sample_model_config, input_tokens=None, output_tokens=None, total_tokens=2_000)
    assert cost == pytest.approx(0.002)


def test_no_usage_returns_none(sample_model_config):
    assert estimate_cost_usd(sample_model_config, input_tokens=None, output_tokens=10) is None


def test_no_pricing_returns_none(sample_model_config):
    sample_model_config.output_per_1m = None
    assert estimate_cost_usd(sample_model_config, input_tokens=10, output_tokens=10) is None
