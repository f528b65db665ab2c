"""
DocCost Calculator: Sensitivity Series
Chart series that vary one input while holding the other side constant.

  Time:  minutes per document varies, AI cost fixed (it ignores human time)
  Pages: pages per document varies, labour cost fixed (isolates AI pricing)
"""
from engines.pricing import ai_cost_for_pages, finite_or_none, resolve_pricing

TIME_POINTS = (1, 5, 10, 15, 20, 30)
PAGE_POINTS = (1, 5, 10, 20, 50, 100)


def time_sensitivity(config, metrics, minutes=TIME_POINTS):
    docs = config['documentCount']
    series = []
    for m in minutes:
        hours = docs * m / 60
        series.append({
            'minutes': m,
            'aiCost': metrics['aiTotalCost'],
            'standardCost': finite_or_none(hours * config['standardHourlyRate']),
            'expertCost': finite_or_none(hours * config['expertHourlyRate']),
        })
    return series


def page_sensitivity(config, metrics, pages=PAGE_POINTS, pricing=None):
    pricing = resolve_pricing(overrides=pricing)
    series = []
    for p in pages:
        eff, units, packs, cost = ai_cost_for_pages(
            config['documentCount'], p, config['imagePagePercentage'],
            config['enhancedPagePercentage'], pricing)
        series.append({
            'pages': p, 'effectivePages': finite_or_none(eff), 'totalUnits': finite_or_none(units),
            'packsRequired': finite_or_none(packs), 'aiCost': finite_or_none(cost),
            'standardCost': metrics['standardLaborCost'],
            'expertCost': metrics['expertLaborCost'],
        })
    return series


def run_sensitivity(config, metrics, pricing=None):
    """Both series in chart-ready form: labels plus one list per line."""
    ts = time_sensitivity(config, metrics)
    ps = page_sensitivity(config, metrics, pricing=pricing)
    return {
        'time': {
            'labels': [r['minutes'] for r in ts],
            'aiCost': [r['aiCost'] for r in ts],
            'standardCost': [r['standardCost'] for r in ts],
            'expertCost': [r['expertCost'] for r in ts],
            'points': ts,
        },
        'pages': {
            'labels': [r['pages'] for r in ps],
            'aiCost': [r['aiCost'] for r in ps],
            'standardCost': [r['standardCost'] for r in ps],
            'expertCost': [r['expertCost'] for r in ps],
            'points': ps,
        },
    }
