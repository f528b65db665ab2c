"""
DocCost Calculator: Parameter Loader
Reads optional calculator parameters from data/config/parameters.xlsx
(one sheet, columns Parameter | Value) and merges them over built-in
pricing constants and default inputs. No file means built-in defaults.
"""
import os, logging
import openpyxl
from engines.config_resolver import DEFAULT_CONFIG, coerce_field
from engines.pricing import DEFAULT_PRICING, resolve_pricing

DATA_DIR = os.path.join(os.path.dirname(os.path.dirname(__file__)), 'data')
PARAMETERS_PATH = os.path.join(DATA_DIR, 'config', 'parameters.xlsx')

PRICING_PARAM_MAP = {
    'AI Units per Pack': 'unitsPerPack',
    'Cost per Pack': 'costPerPack',
    'Effective Annual Hours': 'effectiveAnnualHours',
    'Enhanced Unit Multiplier': 'enhancedUnitMultiplier',
}

DEFAULT_PARAM_MAP = {
    'Documents': 'documentCount',
    'Pages per Document': 'pagesPerDocument',
    'Fields per Document': 'fieldsPerDocument',
    'Human Seconds per Document': 'humanSecondsPerDocument',
    'Standard Hourly Rate': 'standardHourlyRate',
    'Expert Hourly Rate': 'expertHourlyRate',
    'Enhanced Page %': 'enhancedPagePercentage',
    'Image Page %': 'imagePagePercentage',
}


def read_xlsx_sheet(filepath, sheet_name=None):
    wb = openpyxl.load_workbook(filepath, read_only=True, data_only=True)
    ws = wb[sheet_name] if sheet_name else wb.active
    rows = list(ws.iter_rows(values_only=True))
    wb.close()
    if len(rows) < 2:
        return []
    headers = [str(h).strip() if h else f'col_{i}' for i, h in enumerate(rows[0])]
    return [dict(zip(headers, row)) for row in rows[1:]]


def _default_parameters():
    return {'pricing': dict(DEFAULT_PRICING), 'defaults': dict(DEFAULT_CONFIG), 'source': 'built-in'}


def load_parameters(path=None):
    """Load pricing constants and default inputs, falling back to built-ins per row."""
    path = path or PARAMETERS_PATH
    if not os.path.exists(path):
        return _default_parameters()
    params = _default_parameters()
    params['source'] = path
    pricing = dict(params['pricing'])
    for row in read_xlsx_sheet(path):
        key = str(row.get('Parameter', '') or '').strip()
        val = row.get('Value')
        if val is None:
            continue
        if key in PRICING_PARAM_MAP:
            pricing[PRICING_PARAM_MAP[key]] = val
        elif key in DEFAULT_PARAM_MAP:
            field = DEFAULT_PARAM_MAP[key]
            coerced, issue = coerce_field(field, val)
            if issue:
                logging.warning(f"[params] '{key}' value {val!r} ignored, keeping {params['defaults'][field]}")
                continue
            params['defaults'][field] = coerced
        elif key:
            logging.info(f"[params] Unknown parameter row '{key}' skipped")
    # non-numeric / non-positive constants are logged and reset inside resolve_pricing
    params['pricing'] = resolve_pricing(pricing)
    logging.info(f"[params] Loaded calculator parameters from {path}")
    return params
