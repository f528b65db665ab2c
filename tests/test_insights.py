"""
Tests for display formatting, dashboard cards and explanation breakdowns.

Run: pytest tests/test_insights.py -v
"""

from __future__ import annotations

import pytest

from engines.insights import (
    BREAKDOWN_TITLES,
    build_breakdown,
    build_breakdowns,
    build_summary,
    format_currency,
    format_number,
)
from engines.pricing import compute_metrics

SCENARIO = {
    'documentCount': 10000,
    'pagesPerDocument': 5,
    'fieldsPerDocument': 10,
    'humanSecondsPerDocument': 690,
    'standardHourlyRate': 15,
    'expertHourlyRate': 200,
    'enhancedPagePercentage': 0,
    'imagePagePercentage': 0,
}


@pytest.mark.parametrize('value,expected', [
    (2000, '$2K'),
    (28750, '$29K'),
    (999_999, '$1M'),
    (500, '$500.00'),
    (0, '$0.00'),
    (2_500_000, '$2.50M'),
    (7_250_000_000, '$7.25B'),
    (-5000, '-$5.00K'),
    (1.5e15, '$1.5Qa'),
    (2e21, '$2Sx'),
])
def test_format_currency(value: float, expected: str) -> None:
    assert format_currency(value) == expected


@pytest.mark.parametrize('value,expected', [
    (0, '0'),
    (10000, '10,000'),
    (1234.5678, '1,234.568'),
    (2.5e9, '2.5 billion'),
    (3e12, '3 trillion'),
    (2e16, '20Qa'),
    (4.25e18, '4.25Qt'),
])
def test_format_number(value: float, expected: str) -> None:
    assert format_number(value) == expected


def test_summary_cards_for_reference_scenario() -> None:
    summary = build_summary(SCENARIO, compute_metrics(SCENARIO))
    assert summary['roi']['expert']['display'] == '19,067%'
    assert summary['roi']['standard']['tone'] == 'positive'
    assert summary['savings']['standard']['badge'] == '14.4x'
    assert summary['fte']['value'] == 2
    assert summary['fte']['subtext'] == 'approx 1.4 Years'
    assert summary['fte']['critical'] is False
    assert summary['breakEven']['standard']['display'] == '696 Files'
    assert summary['aiCost']['display'] == '$2K'
    assert summary['insights']['minutesPerDocument'] == '11.5'
    assert summary['insights']['cheaperRatio'] == '14.4'


def test_summary_small_workload_reports_hours() -> None:
    config = dict(SCENARIO, documentCount=100)
    summary = build_summary(config, compute_metrics(config))
    assert summary['fte']['subtext'] == '19 Hours'


def test_summary_critical_staffing() -> None:
    config = dict(SCENARIO, documentCount=100000)
    summary = build_summary(config, compute_metrics(config))
    assert summary['fte']['critical'] is True


def test_summary_loss_badge() -> None:
    config = dict(SCENARIO, standardHourlyRate=0)
    summary = build_summary(config, compute_metrics(config))
    assert summary['savings']['standard']['badge'] == 'Loss'
    assert summary['savings']['standard']['tone'] == 'critical'


def test_summary_zero_documents() -> None:
    config = dict(SCENARIO, documentCount=0)
    summary = build_summary(config, compute_metrics(config))
    assert summary['insights']['cheaperRatio'] == '0'
    assert summary['fte']['subtext'] == '0 Hours'
    assert summary['roi']['standard']['display'] == '0%'


def test_all_breakdowns_built() -> None:
    breakdowns = build_breakdowns(SCENARIO, compute_metrics(SCENARIO))
    assert set(breakdowns) == set(BREAKDOWN_TITLES)
    for name, b in breakdowns.items():
        assert b['title'] == BREAKDOWN_TITLES[name]


def test_ai_breakdown_figures() -> None:
    b = build_breakdown('ai', SCENARIO, compute_metrics(SCENARIO))
    assert b['figures'] == {
        'totalPages': '50,000',
        'unitsPerPage': '1.00',
        'totalUnits': '50,000',
        'packs': 1,
        'totalCost': '$2K',
    }


def test_breakeven_breakdown_undefined_per_document() -> None:
    config = dict(SCENARIO, documentCount=0)
    b = build_breakdown('breakeven', config, compute_metrics(config))
    assert b['figures']['standard']['manualCostPerDocument'] == 'n/a'
    assert b['figures']['standard']['documents'] == '0'


def test_fte_breakdown() -> None:
    b = build_breakdown('fte', SCENARIO, compute_metrics(SCENARIO))
    assert b['figures']['totalHours'] == '1,917'
    assert b['figures']['workingYears'] == '1.4'


def test_unknown_breakdown() -> None:
    with pytest.raises(KeyError):
        build_breakdown('tax', SCENARIO, compute_metrics(SCENARIO))


def test_undefined_metrics_render_as_not_available() -> None:
    config = dict(SCENARIO, standardHourlyRate=1e308)
    m = compute_metrics(config)
    summary = build_summary(config, m)
    assert summary['roi']['standard']['display'] == 'n/a'
    assert summary['roi']['standard']['tone'] == 'critical'
    assert summary['savings']['standard']['display'] == 'n/a'
    assert summary['savings']['standard']['badge'] == 'Loss'
    assert summary['roi']['expert']['display'] == '19,067%'
    breakdowns = build_breakdowns(config, m)
    assert breakdowns['savings']['figures']['standard']['ratio'] == 'n/a'
    assert breakdowns['breakeven']['figures']['standard']['manualCostPerDocument'] == 'n/a'


def test_overflowing_volume_summary_does_not_raise() -> None:
    config = dict(SCENARIO, documentCount=1e308)
    m = compute_metrics(config)
    summary = build_summary(config, m)
    assert summary['aiCost']['display'] == 'n/a'
    assert summary['fte']['value'] is None
    assert summary['fte']['subtext'] == 'n/a'
    assert build_breakdown('ai', config, m)['figures']['packs'] is None


def test_summary_accepts_partial_pricing() -> None:
    config = dict(SCENARIO, documentCount=1000)
    pricing = {'effectiveAnnualHours': 100}
    summary = build_summary(config, compute_metrics(config, pricing), pricing)
    # 191.7 hours exceed the 100 hour year
    assert summary['fte']['subtext'] == 'approx 1.9 Years'


def test_format_values_beyond_decimal_default_precision() -> None:
    text = format_currency(1e60)
    assert text.startswith('$') and text.endswith('Sp')
    assert format_number(None) == 'n/a'
