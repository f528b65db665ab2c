"""
DocCost Calculator: Metrics Engine
Pack-based AI pricing vs manual labour cost, with ROI, break-even and staffing.

AI cost is a step function: units are bought in whole packs, so cost jumps
at every multiple of unitsPerPack rather than scaling with volume.

ROI counts avoided labour cost only. Break-even answers "how many documents
until manual cost exceeds one pack", a deliberate proxy for the
labour-line vs pack-staircase intersection.

Per-document figures are undefined for zero documents: they are returned as
None and listed in undefinedFields rather than leaking inf/NaN. Any figure
that leaves float range (NonFiniteResult) is treated the same way.
"""
import logging
import math
import sys
from engines.config_resolver import effective_pages, effective_units_per_page

DIVISION_UNDEFINED = 'DivisionUndefined'
ZERO_INVESTMENT_GUARD = 'ZeroInvestmentGuard'

DEFAULT_PRICING = {
    'unitsPerPack': 100000,
    'costPerPack': 2000,
    # 230 workdays x 6 productive hours: time off and sub-100% utilisation
    'effectiveAnnualHours': 1380,
    'enhancedUnitMultiplier': 3,
}

PRESETS = {
    'effective': {'label': 'Effective capacity', 'effectiveAnnualHours': 1380},
    'full_time': {'label': 'Raw full-time hours', 'effectiveAnnualHours': 2080},
}
DEFAULT_PRESET = 'effective'

NON_FINITE_RESULT = 'NonFiniteResult'

PER_DOCUMENT_FIELDS = ('aiCostPerDocument', 'standardCostPerDocument', 'expertCostPerDocument')
BREAK_EVEN_FIELDS = ('breakEvenDocumentsStandard', 'breakEvenDocumentsExpert')


def resolve_pricing(base=None, preset=None, overrides=None):
    """Merge built-in pricing, a base record, a named preset and per-call overrides.

    Raises ValueError for an unknown preset. Non-positive or non-numeric
    constants are logged and replaced by the built-in value.
    """
    pricing = dict(DEFAULT_PRICING)
    pricing.update(base or {})
    if preset:
        if preset not in PRESETS:
            raise ValueError(f"Unknown preset {preset!r}; expected one of {sorted(PRESETS)}")
        pricing.update({k: v for k, v in PRESETS[preset].items() if k in DEFAULT_PRICING})
    pricing.update(overrides or {})

    for key, fallback in DEFAULT_PRICING.items():
        val = pricing.get(key)
        try:
            val = float(val)
        except (TypeError, ValueError):
            val = None
        if val is None or not math.isfinite(val) or val <= 0:
            logging.warning(f"[pricing] {key}={pricing.get(key)!r} is not a positive number, using {fallback}")
            val = fallback
        pricing[key] = int(val) if float(val).is_integer() else val
    return {k: pricing[k] for k in DEFAULT_PRICING}


def finite_or_none(value):
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return value


def packs_for_units(total_units, units_per_pack):
    """Whole packs needed. An overflowing quotient is returned as-is (inf) for the caller to discard."""
    quotient = total_units / units_per_pack
    return math.ceil(quotient) if math.isfinite(quotient) else quotient


def ai_cost_for_pages(document_count, pages_per_document, image_percentage, enhanced_percentage, pricing):
    """AI cost for a volume -> (effective pages, total units, packs, cost)."""
    eff = effective_pages(pages_per_document, image_percentage)
    units = document_count * eff * effective_units_per_page(enhanced_percentage, pricing['enhancedUnitMultiplier'])
    packs = packs_for_units(units, pricing['unitsPerPack'])
    cost = packs * pricing['costPerPack']
    # int packs times an int price can outgrow float range without becoming inf
    if cost > sys.float_info.max:
        cost = math.inf
    return eff, units, packs, cost


def _per_document(total, document_count):
    return total / document_count if document_count > 0 else None


def _break_even(cost_per_pack, cost_per_document):
    if cost_per_document is None or not math.isfinite(cost_per_document) or cost_per_document <= 0:
        return 0
    documents = cost_per_pack / cost_per_document
    return math.ceil(documents) if math.isfinite(documents) else None


def compute_metrics(config, pricing=None):
    """Compute every derived figure for one configuration. Pure; never raises on a resolved config.

    ``pricing`` may be partial; missing or invalid constants take the built-in values.
    """
    pricing = resolve_pricing(overrides=pricing)
    docs = config['documentCount']

    eff_pages, total_units, packs, ai_total = ai_cost_for_pages(
        docs, config['pagesPerDocument'], config['imagePagePercentage'],
        config['enhancedPagePercentage'], pricing)
    total_pages = docs * eff_pages
    units_per_page = effective_units_per_page(config['enhancedPagePercentage'], pricing['enhancedUnitMultiplier'])

    total_hours = docs * config['humanSecondsPerDocument'] / 3600
    std_cost = total_hours * config['standardHourlyRate']
    exp_cost = total_hours * config['expertHourlyRate']

    ai_per_doc = _per_document(ai_total, docs)
    std_per_doc = _per_document(std_cost, docs)
    exp_per_doc = _per_document(exp_cost, docs)

    net_std = std_cost - ai_total
    net_exp = exp_cost - ai_total

    if ai_total > 0:
        roi_std = net_std / ai_total * 100; roi_exp = net_exp / ai_total * 100
        ratio_std = std_cost / ai_total; ratio_exp = exp_cost / ai_total
    else:
        logging.info(f"[pricing] {ZERO_INVESTMENT_GUARD}: AI cost is 0, ROI and ratios reported as 0")
        roi_std = roi_exp = ratio_std = ratio_exp = 0

    fte = total_hours / pricing['effectiveAnnualHours']

    undefined = [f for f, v in zip(PER_DOCUMENT_FIELDS, (ai_per_doc, std_per_doc, exp_per_doc)) if v is None]
    if undefined:
        logging.info(f"[pricing] {DIVISION_UNDEFINED}: documentCount={docs}, per-document figures left undefined")

    metrics = {
        'effectivePagesPerDocument': eff_pages,
        'totalPages': total_pages,
        'effectiveUnitsPerPage': units_per_page,
        'totalUnits': total_units,
        'packsRequired': packs,
        'aiTotalCost': ai_total,
        'aiCostPerDocument': ai_per_doc,
        'totalHumanHours': total_hours,
        'standardLaborCost': std_cost,
        'expertLaborCost': exp_cost,
        'standardCostPerDocument': std_per_doc,
        'expertCostPerDocument': exp_per_doc,
        'netSavingsStandard': net_std,
        'netSavingsExpert': net_exp,
        'roiStandardPercent': roi_std,
        'roiExpertPercent': roi_exp,
        'efficiencyRatioStandard': ratio_std,
        'efficiencyRatioExpert': ratio_exp,
        'breakEvenDocumentsStandard': _break_even(pricing['costPerPack'], std_per_doc),
        'breakEvenDocumentsExpert': _break_even(pricing['costPerPack'], exp_per_doc),
        'requiredFullTimeEquivalents': fte,
        'equivalentWorkingYears': fte,
    }

    overflowed = [k for k, v in metrics.items() if v is not None and finite_or_none(v) is None]
    if overflowed:
        logging.warning(f"[pricing] {NON_FINITE_RESULT}: {overflowed} out of float range, left undefined")
        for key in overflowed:
            metrics[key] = None
        undefined += [k for k in overflowed if k not in undefined]
    # break-even can overflow without a float input going non-finite
    undefined += [k for k in BREAK_EVEN_FIELDS if metrics[k] is None and k not in undefined]

    metrics['perDocumentDefined'] = all(metrics[f] is not None for f in PER_DOCUMENT_FIELDS)
    metrics['undefinedFields'] = undefined
    return metrics
