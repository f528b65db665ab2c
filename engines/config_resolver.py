"""
DocCost Calculator: Configuration Resolver
Normalises raw user input (query string, form fields, JSON) into a
configuration record the metrics engine can consume.

Fallbacks are per field, not global: a page count that fails coercion
becomes 1 and a field count becomes 5, so later denominators stay
non-zero. Everything else falls back to 0. Counts, times and rates must
be non-negative; the two percentages are left to clamp_percentages.

Human time is a derived suggestion. Editing fields, pages or the image
ratio re-derives it; editing the time directly (or anything else) does not.
"""
import logging
import math
from urllib.parse import urlencode

INVALID_NUMERIC_INPUT = 'InvalidNumericInput'

# Magnitude cap applied to every input field
MAX_NUMERIC_INPUT = 1e12
WIRE_SCALE_DIGITS = 6

SECONDS_PER_FIELD = 60
SECONDS_PER_PAGE = 30
ENHANCED_UNIT_MULTIPLIER = 3

# ── Field catalogue ──
# query: short key used in shareable URLs
# wireScale: multiply the wire value by this to get the stored value (time travels in minutes)
FIELDS = {
    'documentCount':           {'query': 'docs',     'fallback': 0, 'integer': True, 'nonNegative': True},
    'pagesPerDocument':        {'query': 'pages',    'fallback': 1, 'positive': True},
    'fieldsPerDocument':       {'query': 'fields',   'fallback': 5, 'nonNegative': True},
    'humanSecondsPerDocument': {'query': 'time',     'fallback': 0, 'nonNegative': True, 'wireScale': 60},
    'standardHourlyRate':      {'query': 'rate_std', 'fallback': 0, 'nonNegative': True},
    'expertHourlyRate':        {'query': 'rate_exp', 'fallback': 0, 'nonNegative': True},
    'enhancedPagePercentage':  {'query': 'mix',      'fallback': 0},
    'imagePagePercentage':     {'query': 'img',      'fallback': 0},
}

QUERY_KEYS = {f: spec['query'] for f, spec in FIELDS.items()}
_FIELD_BY_QUERY = {spec['query']: f for f, spec in FIELDS.items()}

DEFAULT_CONFIG = {
    'documentCount': 10000,
    'pagesPerDocument': 5,
    'fieldsPerDocument': 10,
    'humanSecondsPerDocument': 690,
    'standardHourlyRate': 15.00,
    'expertHourlyRate': 200.00,
    'enhancedPagePercentage': 50,
    'imagePagePercentage': 50,
}

# Which edits re-derive humanSecondsPerDocument from the heuristic
RECOMPUTE_TRIGGERS = {
    'documentCount': False,
    'pagesPerDocument': True,
    'fieldsPerDocument': True,
    'humanSecondsPerDocument': False,
    'standardHourlyRate': False,
    'expertHourlyRate': False,
    'enhancedPagePercentage': False,
    'imagePagePercentage': True,
}

PERCENTAGE_FIELDS = ('enhancedPagePercentage', 'imagePagePercentage')


def effective_pages(pages_per_document, image_percentage):
    """Blend image documents (always 1 page) with multi-page documents."""
    image_ratio = image_percentage / 100
    return image_ratio * 1 + (1 - image_ratio) * pages_per_document


def effective_units_per_page(enhanced_percentage, multiplier=ENHANCED_UNIT_MULTIPLIER):
    enhanced_ratio = enhanced_percentage / 100
    return (1 - enhanced_ratio) * 1 + enhanced_ratio * multiplier


def suggested_human_time(fields_per_document, pages):
    """Heuristic manual time in seconds: 60s per field plus 30s per effective page."""
    return fields_per_document * SECONDS_PER_FIELD + pages * SECONDS_PER_PAGE


def canonical_field(key):
    """Map a config name or query key to the config name. Raises KeyError for unknown keys."""
    if key in FIELDS:
        return key
    if key in _FIELD_BY_QUERY:
        return _FIELD_BY_QUERY[key]
    raise KeyError(f"Unknown configuration field: {key!r}")


def _to_number(value):
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        num = float(value)
    else:
        text = str(value).strip()
        if not text:
            return None
        try:
            num = float(text)
        except ValueError:
            return None
    if math.isnan(num) or math.isinf(num):
        return None
    return num


def _issue(field, value, fallback):
    return {'field': field, 'value': value, 'fallback': fallback, 'error': INVALID_NUMERIC_INPUT}


def _stored(spec, num):
    if spec.get('integer'):
        return int(num)
    return int(num) if num.is_integer() else num


def coerce_field(field, value, scale=1):
    """Coerce one raw value. Returns (value, issue); issue is None when the input was usable.

    Magnitudes beyond MAX_NUMERIC_INPUT are capped and reported, so engine
    products stay finite.
    """
    spec = FIELDS[field]
    num = _to_number(value)
    valid = num is not None
    if valid and spec.get('positive') and num <= 0:
        valid = False
    if valid and spec.get('nonNegative') and num < 0:
        valid = False
    if not valid:
        fallback = spec['fallback']
        logging.warning(f"[config] {field}={value!r} is not usable, falling back to {fallback}")
        return fallback, _issue(field, value, fallback)
    if scale != 1:
        # the wire carries 10 decimals; drop the residue the scale-up leaves behind
        num = round(num * scale, WIRE_SCALE_DIGITS)
    if abs(num) > MAX_NUMERIC_INPUT:
        capped = _stored(spec, math.copysign(MAX_NUMERIC_INPUT, num))
        logging.warning(f"[config] {field}={value!r} exceeds {MAX_NUMERIC_INPUT:g}, capped to {capped}")
        return capped, _issue(field, value, capped)
    return _stored(spec, num), None


def _lookup(raw, field):
    """Find a field in raw input under its config name or query key -> (found, value, scale)."""
    spec = FIELDS[field]
    if field in raw:
        return True, raw[field], 1
    if spec['query'] in raw:
        return True, raw[spec['query']], spec.get('wireScale', 1)
    return False, None, 1


def resolve_config_with_report(raw, defaults=None):
    """Resolve raw input into (config, issues).

    Fields absent from ``raw`` take the value in ``defaults`` (or the field
    fallback when no defaults are given). Fields present but unusable always
    take the field fallback, never the default.
    """
    raw = raw or {}
    config = {}; issues = []
    for field, spec in FIELDS.items():
        found, value, scale = _lookup(raw, field)
        if not found:
            config[field] = defaults[field] if defaults and field in defaults else spec['fallback']
            continue
        config[field], issue = coerce_field(field, value, scale)
        if issue:
            issues.append(issue)
    return config, issues


def resolve_config(raw, defaults=None):
    return resolve_config_with_report(raw, defaults)[0]


def has_explicit_time(raw):
    return bool(raw) and ('humanSecondsPerDocument' in raw or QUERY_KEYS['humanSecondsPerDocument'] in raw)


def with_suggested_time(config):
    """Return a copy of config with humanSecondsPerDocument set from the heuristic."""
    updated = dict(config)
    pages = effective_pages(updated['pagesPerDocument'], updated['imagePagePercentage'])
    updated['humanSecondsPerDocument'] = suggested_human_time(updated['fieldsPerDocument'], pages)
    return updated


def initial_config(raw, defaults=None):
    """First-load resolution: apply the time heuristic unless the input carried a time."""
    config, issues = resolve_config_with_report(raw, defaults)
    if not has_explicit_time(raw):
        config = with_suggested_time(config)
    return config, issues


def apply_change(config, key, value):
    """Apply one edit and honour the recompute trigger for that field.

    Never mutates ``config``. Raises KeyError for unknown fields.
    """
    field = canonical_field(key)
    scale = FIELDS[field].get('wireScale', 1) if key != field else 1
    updated = dict(config)
    updated[field], _ = coerce_field(field, value, scale)
    if RECOMPUTE_TRIGGERS[field]:
        updated = with_suggested_time(updated)
    return updated


def clamp_percentages(config):
    clamped = dict(config)
    for field in PERCENTAGE_FIELDS:
        clamped[field] = max(0, min(100, clamped[field]))
    return clamped


def _format_wire(value):
    if isinstance(value, int) or float(value).is_integer():
        return str(int(value))
    return f"{value:.10f}".rstrip('0').rstrip('.')


def to_query_params(config):
    """Configuration -> ordered dict of query-string values (time in minutes)."""
    params = {}
    for field, spec in FIELDS.items():
        value = config[field] / spec.get('wireScale', 1)
        params[spec['query']] = _format_wire(value)
    return params


def from_query_params(params, defaults=None):
    return resolve_config(params, defaults)


def build_share_url(config, base_path='/'):
    return f"{base_path}?{urlencode(to_query_params(config))}"
