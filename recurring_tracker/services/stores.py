"""
Accesso alle tabelle collaboratrici: template ricorrenti e istanze.

Il generatore passa sempre da qui per leggere/scrivere, così le regole di
persistenza (filtro preliminare, segnalibro che non regredisce, inserimento
tollerante ai duplicati) stanno in un solo posto.
"""
import logging

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from recurring_tracker import db
from recurring_tracker.errors import TemplateFetchError
from recurring_tracker.models import RecurringTemplate, instance_model_for

logger = logging.getLogger(__name__)


class TemplateStore:
    """Lettura dei template e aggiornamento del segnalibro di generazione"""

    def get(self, template_id):
        return db.session.get(RecurringTemplate, template_id)

    def list_active_templates_due_before(self, window_end):
        """Template attivi con next_generation_date nullo o <= window_end.

        È solo un filtro economico: l'autorità su cosa generare resta il
        controllo per singola data.

        Raises:
            TemplateFetchError: se la query fallisce
        """
        try:
            return RecurringTemplate.query.filter(
                RecurringTemplate.is_active.is_(True),
                or_(
                    RecurringTemplate.next_generation_date.is_(None),
                    RecurringTemplate.next_generation_date <= window_end,
                ),
            ).order_by(RecurringTemplate.id.asc()).all()
        except SQLAlchemyError as e:
            db.session.rollback()
            raise TemplateFetchError(f"Impossibile leggere i template ricorrenti: {e}") from e

    def update_bookmark(self, template_id, last_generated_date, next_generation_date):
        """Avanza il segnalibro; non lo fa mai regredire.

        Returns:
            True se la riga è stata aggiornata
        """
        updated = RecurringTemplate.query.filter(
            RecurringTemplate.id == template_id,
            or_(
                RecurringTemplate.last_generated_date.is_(None),
                RecurringTemplate.last_generated_date < last_generated_date,
            ),
        ).update(
            {
                'last_generated_date': last_generated_date,
                'next_generation_date': next_generation_date,
            },
            synchronize_session='fetch',
        )
        return updated > 0

    def set_active(self, template_id, is_active):
        updated = RecurringTemplate.query.filter_by(id=template_id).update(
            {'is_active': bool(is_active)}, synchronize_session='fetch'
        )
        return updated > 0


class InstanceStore:
    """Istanze (spese/entrate) collegate ai template"""

    def exists_for_template_on_date(self, template, on_date):
        model = instance_model_for(template.template_type)
        row = db.session.query(model.id).filter(
            model.recurring_template_id == template.id,
            model.date == on_date,
        ).first()
        return row is not None

    def build_instance(self, template, on_date):
        """Costruisce (senza salvarla) l'istanza generata per la data indicata"""
        model = instance_model_for(template.template_type)
        fields = dict(
            user_id=template.user_id,
            amount=template.amount,
            description=template.description,
            date=on_date,
            is_recurring=True,
            is_generated=True,
            recurring_template_id=template.id,
        )
        if template.is_expense:
            fields.update(
                expense_type_id=template.expense_type_id,
                is_split=bool(template.is_split),
                original_amount=template.original_amount,
                split_with=template.split_with,
            )
        else:
            fields['source'] = template.source
        return model(**fields)

    def batch_insert(self, instances):
        """Inserisce le istanze in un'unica operazione.

        Se il vincolo UNIQUE (recurring_template_id, date) scatta perché
        un'altra esecuzione ha già scritto alcune date, si ripiega su
        inserimenti singoli: le righe duplicate contano come già generate.

        Returns:
            numero di istanze effettivamente inserite
        """
        if not instances:
            return 0
        try:
            with db.session.begin_nested():
                db.session.add_all(instances)
            return len(instances)
        except IntegrityError:
            logger.info('Batch di %d istanze in conflitto, inserimento riga per riga', len(instances))

        inserted = 0
        for instance in instances:
            try:
                with db.session.begin_nested():
                    db.session.add(instance)
                inserted += 1
            except IntegrityError:
                logger.debug('Istanza già presente per template %s in data %s',
                             instance.recurring_template_id, instance.date)
        return inserted
