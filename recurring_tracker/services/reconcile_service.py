"""
Riconciliazione delle istanze quando un template viene modificato o eliminato.

La regola passato/futuro è la parte più delicata del sottosistema, per questo
è scritta come tabella di decisione esplicita:

    modo          data <= oggi          data > oggi
    ------------  --------------------  -------------------------------
    edit_future   mantieni              elimina (solo righe generate)
    delete        scollega dal template elimina

Le istanze in `keep_ids` (es. quella che l'utente sta modificando
direttamente) non vengono mai toccate.
"""
import logging

from recurring_tracker import db
from recurring_tracker.models import RecurringTemplate, instance_model_for

logger = logging.getLogger(__name__)

MODE_EDIT_FUTURE = 'edit_future'
MODE_DELETE = 'delete'

ACTION_KEEP = 'keep'
ACTION_DELETE = 'delete'
ACTION_UNLINK = 'unlink'

# (modo, data <= oggi) -> azione
RECONCILE_ACTIONS = {
    (MODE_EDIT_FUTURE, True): ACTION_KEEP,
    (MODE_EDIT_FUTURE, False): ACTION_DELETE,
    (MODE_DELETE, True): ACTION_UNLINK,
    (MODE_DELETE, False): ACTION_DELETE,
}


def reconcile_action(mode, instance_date, today, is_generated=True):
    """Azione da applicare a una singola istanza secondo la tabella di decisione"""
    try:
        action = RECONCILE_ACTIONS[(mode, instance_date <= today)]
    except KeyError:
        raise ValueError(f"Modo di riconciliazione non valido: {mode!r}") from None
    # la modifica in blocco rigenera solo ciò che il generatore aveva creato
    if mode == MODE_EDIT_FUTURE and action == ACTION_DELETE and not is_generated:
        return ACTION_KEEP
    return action


def reconcile_instances_on_template_change(template_id, today, mode, keep_ids=()):
    """Applica la tabella di decisione a tutte le istanze del template.

    Va chiamata prima di eliminare la riga del template. Non esegue il
    commit: la transazione appartiene al chiamante.

    Returns:
        dict con i conteggi 'deleted', 'unlinked', 'kept'
    """
    template = db.session.get(RecurringTemplate, template_id)
    if template is None:
        raise LookupError(f"Template ricorrente {template_id} non trovato")
    model = instance_model_for(template.template_type)
    keep_ids = set(keep_ids or ())
    result = {'deleted': 0, 'unlinked': 0, 'kept': 0}

    instances = model.query.filter(model.recurring_template_id == template_id).all()
    for instance in instances:
        if instance.id in keep_ids:
            result['kept'] += 1
            continue
        action = reconcile_action(mode, instance.date, today, bool(instance.is_generated))
        if action == ACTION_DELETE:
            db.session.delete(instance)
            result['deleted'] += 1
        elif action == ACTION_UNLINK:
            instance.recurring_template_id = None
            result['unlinked'] += 1
        else:
            result['kept'] += 1

    db.session.flush()
    logger.info('Riconciliazione template %s (%s, oggi=%s): %s', template_id, mode, today, result)
    return result
