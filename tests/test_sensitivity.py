"""
Tests for the time and page sensitivity series.

Run: pytest tests/test_sensitivity.py -v
"""

from __future__ import annotations

import pytest

from engines.config_resolver import DEFAULT_CONFIG
from engines.pricing import compute_metrics, resolve_pricing
from engines.sensitivity import (
    PAGE_POINTS,
    TIME_POINTS,
    page_sensitivity,
    run_sensitivity,
    time_sensitivity,
)


def test_time_series_holds_ai_cost() -> None:
    m = compute_metrics(DEFAULT_CONFIG)
    series = time_sensitivity(DEFAULT_CONFIG, m)
    assert [p['minutes'] for p in series] == list(TIME_POINTS)
    assert all(p['aiCost'] == m['aiTotalCost'] for p in series)


def test_time_series_labour_cost() -> None:
    m = compute_metrics(DEFAULT_CONFIG)
    five = time_sensitivity(DEFAULT_CONFIG, m)[1]
    # 10000 docs * 5 min = 833.33 hours
    assert five['standardCost'] == pytest.approx(12500)
    assert five['expertCost'] == pytest.approx(166666.67, abs=0.01)


def test_page_series_holds_labour_cost() -> None:
    m = compute_metrics(DEFAULT_CONFIG)
    series = page_sensitivity(DEFAULT_CONFIG, m)
    assert [p['pages'] for p in series] == list(PAGE_POINTS)
    assert all(p['standardCost'] == m['standardLaborCost'] for p in series)
    assert all(p['expertCost'] == m['expertLaborCost'] for p in series)


def test_page_series_ai_cost_steps() -> None:
    m = compute_metrics(DEFAULT_CONFIG)
    by_pages = {p['pages']: p for p in page_sensitivity(DEFAULT_CONFIG, m)}
    # half the documents are single images, mix of 50% enhanced -> 2 units per page
    assert by_pages[1]['aiCost'] == 2000
    assert by_pages[20]['effectivePages'] == pytest.approx(10.5)
    assert by_pages[20]['packsRequired'] == 3
    assert by_pages[20]['aiCost'] == 6000
    assert by_pages[100]['totalUnits'] == pytest.approx(1010000)
    assert by_pages[100]['aiCost'] == 22000


def test_page_series_matches_base_at_configured_pages() -> None:
    m = compute_metrics(DEFAULT_CONFIG)
    five = [p for p in page_sensitivity(DEFAULT_CONFIG, m) if p['pages'] == 5][0]
    assert five['aiCost'] == m['aiTotalCost']


def test_page_series_uses_pricing_parameters() -> None:
    pricing = resolve_pricing(overrides={'costPerPack': 1000})
    m = compute_metrics(DEFAULT_CONFIG, pricing)
    series = page_sensitivity(DEFAULT_CONFIG, m, pricing=pricing)
    assert series[-1]['aiCost'] == 11000


def test_run_sensitivity_chart_shape() -> None:
    m = compute_metrics(DEFAULT_CONFIG)
    sens = run_sensitivity(DEFAULT_CONFIG, m)
    assert sens['time']['labels'] == list(TIME_POINTS)
    assert sens['pages']['labels'] == list(PAGE_POINTS)
    for key in ('aiCost', 'standardCost', 'expertCost'):
        assert len(sens['time'][key]) == len(TIME_POINTS)
        assert len(sens['pages'][key]) == len(PAGE_POINTS)


def test_series_do_not_mutate_config() -> None:
    config = dict(DEFAULT_CONFIG)
    run_sensitivity(config, compute_metrics(config))
    assert config == DEFAULT_CONFIG


def test_zero_documents_series() -> None:
    config = dict(DEFAULT_CONFIG, documentCount=0)
    sens = run_sensitivity(config, compute_metrics(config))
    assert sens['time']['standardCost'] == [0] * len(TIME_POINTS)
    assert sens['pages']['aiCost'] == [0] * len(PAGE_POINTS)


def test_page_series_accepts_partial_pricing() -> None:
    m = compute_metrics(DEFAULT_CONFIG, {'costPerPack': 1000})
    series = page_sensitivity(DEFAULT_CONFIG, m, pricing={'costPerPack': 1000})
    assert series[-1]['aiCost'] == 11000


def test_overflowing_series_points_are_undefined() -> None:
    config = dict(DEFAULT_CONFIG, documentCount=1e308, standardHourlyRate=1e308)
    sens = run_sensitivity(config, compute_metrics(config))
    assert sens['time']['standardCost'] == [None] * len(TIME_POINTS)
    assert sens['pages']['aiCost'] == [None] * len(PAGE_POINTS)
    assert all(p['packsRequired'] is None for p in sens['pages']['points'])
