"""
DocCost Calculator: Summary & Breakdown Builder
Turns a metrics record into dashboard cards, insight lines and the five
"how was this calculated" breakdowns (roi, savings, breakeven, fte, ai).

Formatting follows the calculator's display rules: compact currency
($2K, $2.50M), grouped plain numbers below a billion, long-form compact
above it, and custom suffixes from a quadrillion up (Qa, Qt, Sx, Sp).
"""
import math
from decimal import Decimal, ROUND_HALF_UP, localcontext
from engines.pricing import resolve_pricing

LARGE_SUFFIXES = ((1e24, 'Sp'), (1e21, 'Sx'), (1e18, 'Qt'), (1e15, 'Qa'))
SHORT_COMPACT = ((1e12, 'T'), (1e9, 'B'), (1e6, 'M'), (1e3, 'K'))
LONG_COMPACT = ((1e12, ' trillion'), (1e9, ' billion'))

FTE_CRITICAL_THRESHOLD = 5
UNDEFINED_DISPLAY = 'n/a'

BREAKDOWN_TITLES = {
    'roi': 'Projected ROI Breakdown',
    'savings': 'Net Estimated Savings Breakdown',
    'breakeven': 'Break-Even Volume Analysis',
    'fte': 'Est. FTEs Required Breakdown',
    'ai': 'Est. AI Cost Breakdown',
}


def _round(value, digits=0):
    q = Decimal(1).scaleb(-digits)
    with localcontext() as ctx:
        # enough digits for any finite float at the requested scale
        ctx.prec = 320 + digits
        return float(Decimal(repr(float(value))).quantize(q, rounding=ROUND_HALF_UP))


def round_half_up(value):
    if value is None:
        return None
    return int(math.floor(value + 0.5))


def _ceil(value):
    return math.ceil(value) if value is not None else None


def _fixed(value, digits):
    return f"{value:.{digits}f}" if value is not None else UNDEFINED_DISPLAY


def _percent(value):
    return f"{format_number(round_half_up(value))}%" if value is not None else UNDEFINED_DISPLAY


def _strip(text):
    return text.rstrip('0').rstrip('.') if '.' in text else text


def _grouped(value, max_digits):
    return _strip(f"{_round(value, max_digits):,.{max_digits}f}")


def _compact(value, table, digits, strip):
    """Scale by the largest fitting divisor; roll over to the next unit if rounding hits 1000."""
    abs_v = abs(value)
    sign = '-' if value < 0 else ''
    for i, (div, suffix) in enumerate(table):
        if abs_v >= div:
            scaled = _round(abs_v / div, digits)
            if scaled >= 1000 and i > 0:
                div, suffix = table[i - 1]
                scaled = _round(abs_v / div, digits)
            text = f"{scaled:,.{digits}f}"
            return sign, (_strip(text) if strip else text) + suffix
    scaled = _round(abs_v, digits)
    if scaled >= 1000:
        div, suffix = table[-1]
        text = f"{_round(abs_v / div, digits):,.{digits}f}"
        return sign, (_strip(text) if strip else text) + suffix
    text = f"{scaled:,.{digits}f}"
    return sign, _strip(text) if strip else text


def format_large_value(value, is_currency=False):
    if value is None:
        return UNDEFINED_DISPLAY
    abs_v = abs(value)
    for div, suffix in LARGE_SUFFIXES:
        if abs_v >= div:
            num = _grouped(value / div, 2)
            return f"${num}{suffix}" if is_currency else f"{num}{suffix}"
    if is_currency:
        digits = 0 if 1000 <= value < 1e6 else 2
        sign, body = _compact(value, SHORT_COMPACT, digits, strip=False)
        return f"{sign}${body}"
    if value >= 1e9:
        sign, body = _compact(value, LONG_COMPACT, 2, strip=True)
        return sign + body
    return _grouped(value, 3)


def format_currency(value):
    return format_large_value(value, True)


def format_number(value):
    return format_large_value(value, False)


def _per_doc(value):
    return _fixed(value, 4)


def _tone(value):
    return 'positive' if value is not None and value > 0 else 'critical'


def _savings_card(net, ratio):
    return {'value': net, 'display': format_currency(net), 'tone': _tone(net),
            'badge': f"{_fixed(ratio, 1)}x" if net is not None and net > 0 else 'Loss'}


def _fte_subtext(metrics, annual_hours):
    hours = metrics['totalHumanHours']
    if hours is None:
        return UNDEFINED_DISPLAY
    if hours > annual_hours:
        return f"approx {_fixed(metrics['equivalentWorkingYears'], 1)} Years"
    return f"{format_number(round_half_up(hours))} Hours"


def build_summary(config, metrics, pricing=None):
    """Dashboard cards and insight lines for one metrics record.

    Undefined metrics (None) render as 'n/a'.
    """
    pricing = resolve_pricing(overrides=pricing)
    m = metrics
    fte = m['requiredFullTimeEquivalents']
    headcount = _ceil(fte)

    ai_per_doc = m['aiCostPerDocument']
    std_per_doc = m['standardCostPerDocument']
    if ai_per_doc and std_per_doc is not None:
        cheaper = f"{std_per_doc / ai_per_doc:.1f}"
    else:
        cheaper = '0'

    return {
        'roi': {
            'standard': {'value': m['roiStandardPercent'], 'tone': _tone(m['roiStandardPercent']),
                         'display': _percent(m['roiStandardPercent'])},
            'expert': {'value': m['roiExpertPercent'], 'tone': _tone(m['roiExpertPercent']),
                       'display': _percent(m['roiExpertPercent'])},
        },
        'savings': {
            'standard': _savings_card(m['netSavingsStandard'], m['efficiencyRatioStandard']),
            'expert': _savings_card(m['netSavingsExpert'], m['efficiencyRatioExpert']),
        },
        'fte': {
            'value': headcount, 'display': format_number(headcount),
            'subtext': _fte_subtext(m, pricing['effectiveAnnualHours']),
            'critical': fte is None or fte > FTE_CRITICAL_THRESHOLD,
        },
        'breakEven': {
            'standard': {'value': m['breakEvenDocumentsStandard'],
                         'display': f"{format_number(m['breakEvenDocumentsStandard'])} Files"},
            'expert': {'value': m['breakEvenDocumentsExpert'],
                       'display': f"{format_number(m['breakEvenDocumentsExpert'])} Files"},
        },
        'aiCost': {'value': m['aiTotalCost'], 'display': format_currency(m['aiTotalCost'])},
        'insights': {
            'roi': _percent(m['roiStandardPercent']),
            'savings': format_currency(m['netSavingsStandard']),
            'fte': format_number(headcount),
            'minutesPerDocument': f"{config['humanSecondsPerDocument'] / 60:.1f}",
            'cheaperRatio': cheaper,
        },
    }


def _roi_side(labor, net, roi, ai_total):
    return {'humanCost': format_currency(labor), 'aiCost': format_currency(ai_total),
            'netSavings': format_currency(net), 'roi': _percent(roi)}


def _savings_side(m, rate, labor, net, ratio):
    return {'hours': format_number(round_half_up(m['totalHumanHours'])), 'rate': f"{rate:.2f}",
            'humanTotal': format_currency(labor), 'aiTotal': format_currency(m['aiTotalCost']),
            'netSavings': format_currency(net), 'ratio': _fixed(ratio, 1)}


def build_breakdown(name, config, metrics):
    """One explanation breakdown. Raises KeyError for unknown names."""
    title = BREAKDOWN_TITLES[name]
    m = metrics
    if name == 'roi':
        figures = {
            'standard': _roi_side(m['standardLaborCost'], m['netSavingsStandard'], m['roiStandardPercent'], m['aiTotalCost']),
            'expert': _roi_side(m['expertLaborCost'], m['netSavingsExpert'], m['roiExpertPercent'], m['aiTotalCost']),
        }
    elif name == 'savings':
        figures = {
            'totalUnits': format_number(_ceil(m['totalUnits'])),
            'packs': m['packsRequired'],
            'standard': _savings_side(m, config['standardHourlyRate'], m['standardLaborCost'],
                                      m['netSavingsStandard'], m['efficiencyRatioStandard']),
            'expert': _savings_side(m, config['expertHourlyRate'], m['expertLaborCost'],
                                    m['netSavingsExpert'], m['efficiencyRatioExpert']),
        }
    elif name == 'breakeven':
        figures = {
            'standard': {'manualCostPerDocument': _per_doc(m['standardCostPerDocument']),
                         'documents': format_number(m['breakEvenDocumentsStandard'])},
            'expert': {'manualCostPerDocument': _per_doc(m['expertCostPerDocument']),
                       'documents': format_number(m['breakEvenDocumentsExpert'])},
        }
    elif name == 'fte':
        figures = {
            'documents': format_number(config['documentCount']),
            'minutesPerDocument': f"{config['humanSecondsPerDocument'] / 60:.1f}",
            'totalHours': format_number(round_half_up(m['totalHumanHours'])),
            'fteCount': format_number(_ceil(m['requiredFullTimeEquivalents'])),
            'workingYears': _fixed(m['equivalentWorkingYears'], 1),
        }
    else:
        figures = {
            'totalPages': format_number(_ceil(m['totalPages'])),
            'unitsPerPage': _fixed(m['effectiveUnitsPerPage'], 2),
            'totalUnits': format_number(_ceil(m['totalUnits'])),
            'packs': m['packsRequired'],
            'totalCost': format_currency(m['aiTotalCost']),
        }
    return {'name': name, 'title': title, 'figures': figures}


def build_breakdowns(config, metrics):
    return {name: build_breakdown(name, config, metrics) for name in BREAKDOWN_TITLES}
