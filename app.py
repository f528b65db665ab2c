"""
DocCost Calculator: Flask API Server
Presentation layer around the metrics engine. Every request resolves its own
configuration and recomputes from scratch; the only process-wide state is
the parameter set loaded once from data/config/parameters.xlsx.
"""
import io
import logging
import os
import traceback
from flask import Flask, jsonify, request, send_file
import openpyxl
from openpyxl.styles import Font, PatternFill, Alignment, Border, Side
from engines.config_resolver import (DEFAULT_CONFIG, FIELDS, QUERY_KEYS, RECOMPUTE_TRIGGERS,
                                     apply_change, build_share_url, canonical_field, clamp_percentages,
                                     initial_config, resolve_config_with_report, to_query_params)
from engines.data_loader import load_parameters
from engines.insights import BREAKDOWN_TITLES, build_breakdown, build_summary
from engines.pricing import DEFAULT_PRESET, PRESETS, compute_metrics, resolve_pricing
from engines.sensitivity import run_sensitivity

app = Flask(__name__)

SETTINGS = {
    'pricing': None, 'defaults': None, 'source': None,
    'preset': os.environ.get('CALCULATOR_PRESET'),
    'loaded': False, '_load_error': None,
}


class BadRequest(Exception):
    pass


@app.before_request
def _ensure_loaded():
    if SETTINGS['loaded']:
        return
    try:
        params = load_parameters()
    except Exception as e:
        SETTINGS['_load_error'] = f"{type(e).__name__}: {e}"
        logging.error(f"[app] Parameter load failed, using built-in defaults: {SETTINGS['_load_error']}")
        traceback.print_exc()
        params = {'pricing': resolve_pricing(), 'defaults': dict(DEFAULT_CONFIG), 'source': 'built-in'}
    if SETTINGS['preset'] and SETTINGS['preset'] not in PRESETS:
        logging.warning(f"[app] CALCULATOR_PRESET={SETTINGS['preset']!r} unknown, using {DEFAULT_PRESET}")
        SETTINGS['preset'] = DEFAULT_PRESET
    if SETTINGS['preset']:
        params['pricing'] = resolve_pricing(params['pricing'], SETTINGS['preset'])
    SETTINGS.update(pricing=params['pricing'], defaults=params['defaults'],
                    source=params['source'], loaded=True)


@app.errorhandler(BadRequest)
def _bad_request(e):
    return jsonify({'error': str(e)}), 400


def _json_body():
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        raise BadRequest('Request body must be a JSON object')
    return body


def _pricing_for(preset=None, overrides=None):
    if overrides is not None and not isinstance(overrides, dict):
        raise BadRequest('pricing must be an object')
    try:
        return resolve_pricing(SETTINGS['pricing'], preset, overrides)
    except ValueError as e:
        raise BadRequest(str(e))


def _build_payload(config, pricing, issues=None):
    """Everything the front end renders for one configuration."""
    config = clamp_percentages(config)
    metrics = compute_metrics(config, pricing)
    return {
        'config': config,
        'pricing': pricing,
        'metrics': metrics,
        'sensitivity': run_sensitivity(config, metrics, pricing),
        'summary': build_summary(config, metrics, pricing),
        'query': to_query_params(config),
        'shareUrl': build_share_url(config),
        'issues': issues or [],
    }


def _config_from_args():
    return initial_config(request.args, SETTINGS['defaults'])


def _r2(value):
    # undefined figures stay blank cells
    return round(value, 2) if value is not None else None


# ══════════════════════════════════════════════════════════════
#  ROUTES
# ══════════════════════════════════════════════════════════════

@app.route('/')
def index():
    return jsonify({
        'service': 'DocCost Calculator',
        'defaults': SETTINGS['defaults'],
        'preset': SETTINGS['preset'],
        'parameterSource': SETTINGS['source'],
        'loadError': SETTINGS['_load_error'],
        'routes': sorted(str(r) for r in app.url_map.iter_rules() if r.endpoint != 'static'),
    })


@app.route('/api/defaults')
def api_defaults():
    return jsonify({
        'defaults': SETTINGS['defaults'],
        'pricing': SETTINGS['pricing'],
        'preset': SETTINGS['preset'],
        'presets': PRESETS,
        'queryKeys': QUERY_KEYS,
        'recomputeTriggers': RECOMPUTE_TRIGGERS,
    })


@app.route('/api/metrics', methods=['GET'])
def api_metrics_get():
    pricing = _pricing_for(request.args.get('preset'))
    config, issues = _config_from_args()
    return jsonify(_build_payload(config, pricing, issues))


@app.route('/api/metrics', methods=['POST'])
def api_metrics_post():
    """Compute from a JSON body: {config|params, preset, pricing}."""
    body = _json_body()
    raw = body.get('config', body.get('params', {}))
    if not isinstance(raw, dict):
        raise BadRequest('config must be an object')
    pricing = _pricing_for(body.get('preset'), body.get('pricing'))
    config, issues = initial_config(raw, SETTINGS['defaults'])
    return jsonify(_build_payload(config, pricing, issues))


@app.route('/api/recalculate', methods=['POST'])
def api_recalculate():
    """Apply one field edit to the current configuration.
    Edits to fields, pages or image ratio re-derive the human time; other edits do not.
    """
    body = _json_body()
    field = body.get('field')
    if not field:
        raise BadRequest('field required')
    if 'value' not in body:
        raise BadRequest('value required')
    current = body.get('config', {})
    if not isinstance(current, dict):
        raise BadRequest('config must be an object')
    pricing = _pricing_for(body.get('preset'), body.get('pricing'))
    config, issues = resolve_config_with_report(current, SETTINGS['defaults'])
    try:
        canonical = canonical_field(field)
    except KeyError:
        raise BadRequest(f"Unknown field {field!r}; expected one of {sorted(FIELDS)}")
    # the original key decides the wire scale: 'time' arrives in minutes
    config = apply_change(config, field, body['value'])
    payload = _build_payload(config, pricing, issues)
    payload['changed'] = canonical
    payload['timeRederived'] = RECOMPUTE_TRIGGERS[canonical]
    return jsonify(payload)


@app.route('/api/reset', methods=['POST'])
def api_reset():
    """Back to the default inputs; the share URL drops its query string."""
    config, _ = resolve_config_with_report({}, SETTINGS['defaults'])
    payload = _build_payload(config, _pricing_for())
    payload['shareUrl'] = '/'
    return jsonify(payload)


@app.route('/api/breakdown/<name>')
def api_breakdown(name):
    if name not in BREAKDOWN_TITLES:
        return jsonify({'error': f"Unknown breakdown {name!r}", 'available': list(BREAKDOWN_TITLES)}), 404
    pricing = _pricing_for(request.args.get('preset'))
    config, _ = _config_from_args()
    config = clamp_percentages(config)
    return jsonify(build_breakdown(name, config, compute_metrics(config, pricing)))


@app.route('/api/export')
def api_export():
    """Export configuration, metrics and sensitivity series to Excel."""
    try:
        pricing = _pricing_for(request.args.get('preset'))
        config, _ = _config_from_args()
        payload = _build_payload(config, pricing)
        config = payload['config']; metrics = payload['metrics']; sens = payload['sensitivity']

        wb = openpyxl.Workbook()
        hf = Font(bold=True, color='FFFFFF', size=11)
        hfill = PatternFill(start_color='2E2E38', end_color='2E2E38', fill_type='solid')
        tb = Border(left=Side(style='thin'), right=Side(style='thin'),
                    top=Side(style='thin'), bottom=Side(style='thin'))

        def ws_write(ws, headers, rows):
            for c, h in enumerate(headers, 1):
                cell = ws.cell(row=1, column=c, value=h)
                cell.font = hf; cell.fill = hfill; cell.alignment = Alignment(horizontal='center'); cell.border = tb
            for r, row in enumerate(rows, 2):
                for c, val in enumerate(row, 1):
                    cell = ws.cell(row=r, column=c, value=val); cell.border = tb
            for col in ws.columns:
                ml = max(len(str(cell.value or '')) for cell in col)
                ws.column_dimensions[col[0].column_letter].width = min(ml + 2, 40)

        # 1. Inputs
        ws = wb.active; ws.title = 'Inputs'
        ws_write(ws, ['Parameter', 'Value'],
                 [[k, v] for k, v in config.items()] + [[k, v] for k, v in pricing.items()])

        # 2. Metrics (undefined per-document figures stay blank)
        ws2 = wb.create_sheet('Metrics')
        ws_write(ws2, ['Metric', 'Value'], [
            [k, v] for k, v in metrics.items() if k not in ('perDocumentDefined', 'undefinedFields')
        ])

        # 3. Time sensitivity
        ws3 = wb.create_sheet('Time Sensitivity')
        ws_write(ws3, ['Minutes per Document', 'AI Cost', 'Human (Standard)', 'Human (Expert)'], [
            [p['minutes'], p['aiCost'], _r2(p['standardCost']), _r2(p['expertCost'])]
            for p in sens['time']['points']
        ])

        # 4. Page sensitivity
        ws4 = wb.create_sheet('Page Sensitivity')
        ws_write(ws4, ['Pages per Document', 'Total Units', 'Packs', 'AI Cost', 'Human (Standard)', 'Human (Expert)'], [
            [p['pages'], _r2(p['totalUnits']), p['packsRequired'], p['aiCost'],
             _r2(p['standardCost']), _r2(p['expertCost'])]
            for p in sens['pages']['points']
        ])

        buf = io.BytesIO()
        wb.save(buf); buf.seek(0)
        return send_file(buf, as_attachment=True, download_name='DocCost_Export.xlsx',
                         mimetype='application/vnd.openxmlformats-officedocument.spreadsheetml.sheet')

    except BadRequest:
        raise
    except Exception as e:
        traceback.print_exc()
        return jsonify({'status': 'error', 'message': str(e)}), 500


if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO, format='%(asctime)s %(levelname)s %(message)s')
    app.run(debug=False, host='0.0.0.0', port=int(os.environ.get('PORT', 5000)))
