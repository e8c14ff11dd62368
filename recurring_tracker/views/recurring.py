"""Blueprint JSON per avviare la generazione e gestire i template ricorrenti."""
import hmac
from datetime import date, datetime
from functools import wraps

from flask import Blueprint, current_app, jsonify, request

from recurring_tracker.defaults import TEMPLATE_TYPES
from recurring_tracker.errors import TemplateFetchError
from recurring_tracker.services.generation_service import RecurringGenerationService
from recurring_tracker.services.recurring_template_service import EDITABLE_FIELDS, RecurringTemplateService

recurring_bp = Blueprint('recurring', __name__)
service = RecurringTemplateService()
generation_service = RecurringGenerationService()


class BadRequest(ValueError):
    pass


def _parse_date(value, name):
    if value in (None, ''):
        return None
    try:
        return datetime.strptime(str(value), '%Y-%m-%d').date()
    except ValueError:
        raise BadRequest(f"Parametro '{name}' non valido: atteso YYYY-MM-DD") from None


def _payload():
    return request.get_json(silent=True) or {}


def _today(payload):
    return _parse_date(payload.get('today'), 'today') or date.today()


@recurring_bp.errorhandler(BadRequest)
def bad_request(e):
    return jsonify({'success': False, 'message': str(e)}), 400


def require_token(view):
    """Se RECURRING_TRANSACTION_TOKEN è configurato richiede 'Authorization: Bearer <token>'"""
    @wraps(view)
    def wrapper(*args, **kwargs):
        expected = current_app.config.get('RECURRING_TRANSACTION_TOKEN')
        if expected:
            auth_header = request.headers.get('Authorization', '')
            if not hmac.compare_digest(auth_header, f'Bearer {expected}'):
                return jsonify({'success': False, 'error': 'Unauthorized'}), 401
        return view(*args, **kwargs)
    return wrapper


@recurring_bp.route('/generate', methods=['POST'])
@require_token
def generate():
    """Esegue un passaggio di generazione e restituisce il riepilogo"""
    payload = _payload()
    as_of = _parse_date(payload.get('as_of'), 'as_of') or date.today()
    horizon = payload.get('horizon_months', current_app.config.get('RECURRING_HORIZON_MONTHS'))
    try:
        horizon = int(horizon)
    except (TypeError, ValueError):
        raise BadRequest("Parametro 'horizon_months' non valido") from None
    if horizon < 0:
        raise BadRequest("Parametro 'horizon_months' non può essere negativo")

    try:
        summary = generation_service.run_generation(as_of, horizon_months=horizon)
    except TemplateFetchError as e:
        current_app.logger.error('Generazione ricorrenze fallita: %s', e)
        return jsonify({'success': False, 'error': str(e)}), 500

    return jsonify({'success': True, **summary.to_dict()})


@recurring_bp.route('/templates')
def lista():
    """Elenco dei template, filtrabile con ?user_id="""
    templates = service.get_all(user_id=request.args.get('user_id'))
    return jsonify({'success': True, 'templates': [t.to_dict() for t in templates]})


@recurring_bp.route('/templates', methods=['POST'])
def aggiungi():
    """Crea un nuovo template ricorrente"""
    payload = _payload()
    success, message, template = service.create(
        user_id=payload.get('user_id'),
        template_type=payload.get('template_type'),
        amount=payload.get('amount'),
        frequency=payload.get('frequency'),
        start_date=_parse_date(payload.get('start_date'), 'start_date'),
        end_date=_parse_date(payload.get('end_date'), 'end_date'),
        description=payload.get('description'),
        expense_type_id=payload.get('expense_type_id'),
        is_split=bool(payload.get('is_split', False)),
        split_with=payload.get('split_with'),
        source=payload.get('source'),
    )
    if not success:
        return jsonify({'success': False, 'message': message}), 400
    return jsonify({'success': True, 'message': message, 'template': template.to_dict()}), 201


@recurring_bp.route('/templates/<int:template_id>')
def dati(template_id):
    """Dati del template e date che la prossima generazione creerebbe"""
    template = service.get_by_id(template_id)
    if not template:
        return jsonify({'success': False, 'message': 'Template ricorrente non trovato'}), 404

    as_of = _parse_date(request.args.get('as_of'), 'as_of') or date.today()
    upcoming = generation_service.preview(
        template, as_of, current_app.config.get('RECURRING_HORIZON_MONTHS'))
    return jsonify({
        'success': True,
        'template': template.to_dict(),
        'upcoming': [d.isoformat() for d in upcoming],
    })


@recurring_bp.route('/templates/<int:template_id>/edit', methods=['POST'])
def modifica(template_id):
    """Modifica il template e rigenera le istanze future"""
    payload = _payload()
    fields = {key: payload[key] for key in EDITABLE_FIELDS if key in payload}
    for key in ('start_date', 'end_date'):
        if key in fields:
            fields[key] = _parse_date(fields[key], key)

    success, message, result = service.update_all_future(
        template_id,
        _today(payload),
        editing_instance_id=payload.get('editing_instance_id'),
        **fields,
    )
    if not success:
        status = 404 if message == 'Template ricorrente non trovato' else 400
        return jsonify({'success': False, 'message': message}), status
    return jsonify({'success': True, 'message': message, 'result': result})


@recurring_bp.route('/templates/<int:template_id>/toggle', methods=['POST'])
def toggle(template_id):
    """Mette in pausa / riprende il template"""
    success, message = service.toggle_active(template_id)
    if not success:
        return jsonify({'success': False, 'message': message}), 404
    template = service.get_by_id(template_id)
    return jsonify({'success': True, 'message': message, 'is_active': bool(template.is_active)})


@recurring_bp.route('/templates/<int:template_id>/delete', methods=['POST'])
def elimina(template_id):
    """Elimina il template: istanze future eliminate, passate scollegate"""
    success, message, result = service.delete(template_id, _today(_payload()))
    if not success:
        status = 404 if message == 'Template ricorrente non trovato' else 500
        return jsonify({'success': False, 'message': message}), status
    return jsonify({'success': True, 'message': message, 'result': result})


@recurring_bp.route('/instances/<kind>/<int:instance_id>/detach', methods=['POST'])
def scollega(kind, instance_id):
    """Modifica "solo questa istanza": la scollega dalla ricorrenza"""
    if kind not in TEMPLATE_TYPES:
        raise BadRequest(f"Tipo di istanza non valido: {kind}")
    success, message = service.detach_instance(kind, instance_id)
    if not success:
        return jsonify({'success': False, 'message': message}), 404
    return jsonify({'success': True, 'message': message})
