"""
Service per la gestione dei template ricorrenti.
Fornisce creazione, modifica "di tutte le istanze future", scollegamento di una
singola istanza, eliminazione, pausa/ripresa e riparazione dei segnalibri.
"""
import logging
from datetime import date
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import List, Optional, Tuple

from recurring_tracker.defaults import FREQUENCIES, TEMPLATE_TYPE_EXPENSE, TEMPLATE_TYPE_INCOME, TEMPLATE_TYPES
from recurring_tracker.errors import RecurringError, TemplateValidationError
from recurring_tracker.models import RecurringTemplate, instance_model_for
from recurring_tracker.services import BaseService
from recurring_tracker.services.date_sequence import expand_window, next_date
from recurring_tracker.services.reconcile_service import (
    MODE_DELETE,
    MODE_EDIT_FUTURE,
    reconcile_instances_on_template_change,
)
from recurring_tracker.services.stores import TemplateStore

logger = logging.getLogger(__name__)

CENT = Decimal('0.01')

# campi modificabili con "modifica tutte le istanze future"
EDITABLE_FIELDS = (
    'amount', 'description', 'frequency', 'start_date', 'end_date',
    'expense_type_id', 'is_split', 'split_with', 'source',
)

# campi copiati sull'istanza che l'utente sta modificando direttamente
INSTANCE_FIELDS = {
    TEMPLATE_TYPE_EXPENSE: ('amount', 'description', 'expense_type_id', 'is_split', 'original_amount', 'split_with'),
    TEMPLATE_TYPE_INCOME: ('amount', 'description', 'source'),
}


def to_amount(value):
    """Converte un importo in Decimal con due decimali"""
    try:
        return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError, TypeError):
        raise TemplateValidationError(f"Importo non valido: {value!r}") from None


def split_amounts(face_value, is_split):
    """Restituisce (amount, original_amount): se divisa, la quota è metà del totale"""
    face_value = to_amount(face_value)
    if is_split:
        return (face_value / 2).quantize(CENT, rounding=ROUND_HALF_UP), face_value
    return face_value, None


def validate_template(template):
    """Controlla i vincoli del template.

    Raises:
        TemplateValidationError: al primo vincolo violato
    """
    if not template.user_id:
        raise TemplateValidationError("Il proprietario (user_id) è obbligatorio")
    if template.template_type not in TEMPLATE_TYPES:
        raise TemplateValidationError(f"Il tipo deve essere uno tra {', '.join(TEMPLATE_TYPES)}")
    if template.frequency not in FREQUENCIES:
        raise TemplateValidationError(f"La cadenza deve essere una tra {', '.join(FREQUENCIES)}")
    if template.amount is None or template.amount <= 0:
        raise TemplateValidationError("L'importo deve essere maggiore di zero")
    if template.start_date is None:
        raise TemplateValidationError("La data di inizio è obbligatoria")
    if template.end_date is not None and template.end_date < template.start_date:
        raise TemplateValidationError("La data di fine non può precedere la data di inizio")
    if template.template_type == TEMPLATE_TYPE_EXPENSE and not template.expense_type_id:
        raise TemplateValidationError("Le spese ricorrenti richiedono una tipologia di spesa")
    if template.template_type == TEMPLATE_TYPE_INCOME and not template.source:
        raise TemplateValidationError("Le entrate ricorrenti richiedono una fonte")


def last_occurrence_on_or_before(template, limit):
    """Ultima data della sequenza del template non successiva a `limit` (o None)"""
    if template.start_date > limit:
        return None
    last = None
    for occurrence in expand_window(template.start_date, template.frequency, limit):
        last = occurrence
    return last


class RecurringTemplateService(BaseService):
    """Service per gestire i template ricorrenti"""

    def __init__(self, template_store=None):
        super().__init__()
        self.templates = template_store or TemplateStore()

    def get_all(self, user_id: Optional[str] = None) -> List[RecurringTemplate]:
        """
        Recupera tutti i template, opzionalmente filtrati per proprietario

        Returns:
            Lista di RecurringTemplate
        """
        query = RecurringTemplate.query
        if user_id is not None:
            query = query.filter_by(user_id=user_id)
        return query.order_by(RecurringTemplate.start_date.asc(), RecurringTemplate.id.asc()).all()

    def get_by_id(self, template_id: int) -> Optional[RecurringTemplate]:
        return self.templates.get(template_id)

    def create(self, user_id: str, template_type: str, amount, frequency: str, start_date: date,
               description: str = None, end_date: date = None, expense_type_id: str = None,
               is_split: bool = False, split_with: str = None, source: str = None,
               is_active: bool = True) -> Tuple[bool, str, Optional[RecurringTemplate]]:
        """
        Crea un nuovo template ricorrente

        Args:
            amount: importo complessivo; se `is_split` viene salvata la metà
                e l'importo intero finisce in `original_amount`

        Returns:
            Tuple (success: bool, message: str, template: RecurringTemplate)
        """
        try:
            is_expense = template_type == TEMPLATE_TYPE_EXPENSE
            final_amount, original_amount = split_amounts(amount, is_split and is_expense)
            template = RecurringTemplate(
                user_id=user_id,
                template_type=template_type,
                amount=final_amount,
                description=(description or '').strip() or None,
                frequency=frequency,
                start_date=start_date,
                end_date=end_date,
                expense_type_id=expense_type_id if is_expense else None,
                is_split=bool(is_split) if is_expense else False,
                original_amount=original_amount,
                split_with=(split_with or None) if is_expense and is_split else None,
                source=source if not is_expense else None,
                is_active=bool(is_active),
            )
            validate_template(template)

            self.db.session.add(template)
            self.db.session.commit()
            logger.info('Creato template ricorrente %s (%s, %s)', template.id, template_type, frequency)
            return True, "Template ricorrente creato con successo", template

        except TemplateValidationError as e:
            return False, str(e), None
        except Exception as e:
            self.db.session.rollback()
            logger.exception('Errore nella creazione del template ricorrente')
            return False, f"Errore durante la creazione: {str(e)}", None

    def update_all_future(self, template_id: int, today: date, editing_instance_id: int = None,
                          **fields) -> Tuple[bool, str, Optional[dict]]:
        """
        Modifica "tutte le istanze future": aggiorna il template, elimina le
        istanze generate con data > today (saranno rigenerate con i nuovi
        valori) e aggiorna direttamente l'istanza che l'utente sta modificando.

        Il segnalibro viene riportato all'ultima istanza generata <= today
        ancora sulla sequenza del template, così la prossima esecuzione ricrea
        le date future eliminate e quelle introdotte dalla nuova sequenza.

        Returns:
            Tuple (success: bool, message: str, conteggi della riconciliazione)
        """
        unknown = set(fields) - set(EDITABLE_FIELDS)
        if unknown:
            return False, f"Campi non modificabili: {', '.join(sorted(unknown))}", None

        try:
            template = self.get_by_id(template_id)
            if not template:
                return False, "Template ricorrente non trovato", None

            self._apply_fields(template, fields)
            validate_template(template)

            keep_ids = [editing_instance_id] if editing_instance_id is not None else []
            result = reconcile_instances_on_template_change(template.id, today, MODE_EDIT_FUTURE, keep_ids=keep_ids)

            if editing_instance_id is not None:
                self._update_editing_instance(template, editing_instance_id)

            self._rewind_bookmark(template, today)
            self.db.session.commit()
            return True, "Template ricorrente aggiornato con successo", result

        except TemplateValidationError as e:
            self.db.session.rollback()
            return False, str(e), None
        except Exception as e:
            self.db.session.rollback()
            logger.exception('Errore nella modifica del template %s', template_id)
            return False, f"Errore durante l'aggiornamento: {str(e)}", None

    def detach_instance(self, template_type: str, instance_id: int) -> Tuple[bool, str]:
        """
        Modifica "solo questa istanza": scollega l'istanza dal suo template
        senza toccare il template né le altre istanze.
        """
        try:
            model = instance_model_for(template_type)
            instance = self.db.session.get(model, instance_id)
            if not instance:
                return False, "Istanza non trovata"
            instance.recurring_template_id = None
            self.db.session.commit()
            return True, "Istanza scollegata dalla ricorrenza"
        except ValueError as e:
            return False, str(e)
        except Exception as e:
            self.db.session.rollback()
            logger.exception('Errore nello scollegamento dell\'istanza %s', instance_id)
            return False, f"Errore durante lo scollegamento: {str(e)}"

    def delete(self, template_id: int, today: date) -> Tuple[bool, str, Optional[dict]]:
        """
        Elimina un template ricorrente: le istanze future vengono eliminate,
        quelle passate/odierne scollegate; solo dopo si elimina il template.
        Tutto avviene in un'unica transazione.
        """
        try:
            template = self.get_by_id(template_id)
            if not template:
                return False, "Template ricorrente non trovato", None

            result = reconcile_instances_on_template_change(template.id, today, MODE_DELETE)
            self.db.session.delete(template)
            self.db.session.commit()

            logger.info('Eliminato template ricorrente %s: %s', template_id, result)
            return True, "Template ricorrente eliminato con successo", result

        except Exception as e:
            self.db.session.rollback()
            logger.exception('Errore nell\'eliminazione del template %s', template_id)
            return False, f"Errore durante l'eliminazione: {str(e)}", None

    def set_active(self, template_id: int, is_active: bool) -> Tuple[bool, str]:
        """
        Mette in pausa o riprende un template. Il segnalibro resta congelato:
        alla ripresa la generazione recupera il periodo di pausa.
        """
        try:
            if not self.templates.set_active(template_id, is_active):
                return False, "Template ricorrente non trovato"
            self.db.session.commit()
            return True, "Template ripreso" if is_active else "Template in pausa"
        except Exception as e:
            self.db.session.rollback()
            logger.exception('Errore nel cambio di stato del template %s', template_id)
            return False, f"Errore durante l'aggiornamento: {str(e)}"

    def toggle_active(self, template_id: int) -> Tuple[bool, str]:
        template = self.get_by_id(template_id)
        if not template:
            return False, "Template ricorrente non trovato"
        return self.set_active(template_id, not template.is_active)

    def recompute_next_generation_dates(self) -> dict:
        """
        Ricalcola next_generation_date dei template attivi: next_date del
        segnalibro, oppure start_date se il template non è mai stato generato.

        Returns:
            Dict con 'updated' e 'failed'
        """
        result = {'updated': 0, 'failed': 0}
        templates = RecurringTemplate.query.filter(RecurringTemplate.is_active.is_(True)).all()
        for template in templates:
            if template.frequency not in FREQUENCIES:
                logger.warning('Template %s con cadenza non valida: %r', template.id, template.frequency)
                result['failed'] += 1
                continue
            if template.last_generated_date is None:
                expected = template.start_date
            else:
                expected = next_date(template.last_generated_date, template.frequency)
            if template.next_generation_date != expected:
                template.next_generation_date = expected
                result['updated'] += 1
        self.commit()
        logger.info('Ricalcolo next_generation_date: %s', result)
        return result

    def _apply_fields(self, template, fields):
        if 'amount' in fields or 'is_split' in fields:
            is_split = bool(fields.get('is_split', template.is_split)) and template.is_expense
            face_value = fields.get('amount')
            if face_value is None:
                face_value = template.original_amount if template.is_split and template.original_amount else template.amount
            template.amount, template.original_amount = split_amounts(face_value, is_split)
            template.is_split = is_split
            if not is_split:
                template.split_with = None

        for key in ('description', 'frequency', 'start_date', 'end_date', 'expense_type_id', 'source'):
            if key in fields:
                value = fields[key]
                if key == 'description':
                    value = (value or '').strip() or None
                setattr(template, key, value)

        if 'split_with' in fields and template.is_split:
            template.split_with = fields['split_with'] or None

    def _update_editing_instance(self, template, instance_id):
        model = instance_model_for(template.template_type)
        instance = self.db.session.get(model, instance_id)
        if instance is None or instance.recurring_template_id != template.id:
            raise RecurringError(f"L'istanza {instance_id} non appartiene al template {template.id}")
        for key in INSTANCE_FIELDS[template.template_type]:
            setattr(instance, key, getattr(template, key))

    def _rewind_bookmark(self, template, today):
        """Riporta il segnalibro all'ultima istanza generata con data <= today
        che cade ancora sulla sequenza (eventualmente modificata) del template.
        Se non ce n'è nessuna il segnalibro torna a NULL e la prossima
        esecuzione riparte da start_date: le date già presenti sono saltate dal
        controllo di esistenza.
        """
        if template.last_generated_date is None:
            # mai generato: nulla da riavvolgere
            return
        model = instance_model_for(template.template_type)
        rows = self.db.session.query(model.date).filter(
            model.recurring_template_id == template.id,
            model.is_generated.is_(True),
            model.date <= today,
        ).order_by(model.date.desc()).all()

        last = None
        for (instance_date,) in rows:
            if last_occurrence_on_or_before(template, instance_date) == instance_date:
                last = instance_date
                break
        template.last_generated_date = last
        template.next_generation_date = next_date(last, template.frequency) if last else None
