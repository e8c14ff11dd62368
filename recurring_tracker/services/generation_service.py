"""Servizio che genera le istanze (spese/entrate) a partire dai template ricorrenti."""
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone

from recurring_tracker.defaults import DEFAULT_HORIZON_MONTHS
from recurring_tracker.services import BaseService
from recurring_tracker.services.date_sequence import add_months, expand_window, next_date
from recurring_tracker.services.stores import InstanceStore, TemplateStore

logger = logging.getLogger(__name__)


@dataclass
class GenerationSummary:
    """Esito di una esecuzione del generatore, da loggare o restituire allo scheduler"""
    as_of: date
    window_end: date
    templates_processed: int = 0
    instances_generated: int = 0
    templates_skipped: int = 0
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self):
        return {
            'templates_processed': self.templates_processed,
            'instances_generated': self.instances_generated,
            'templates_skipped': self.templates_skipped,
            'as_of': self.as_of.isoformat(),
            'window_end': self.window_end.isoformat(),
            'timestamp': self.timestamp.isoformat(),
        }


class RecurringGenerationService(BaseService):
    """Espande i template attivi in istanze datate dentro la finestra di generazione.

    Ogni template è elaborato e committato per conto suo: un errore su un
    template viene loggato e contato in `templates_skipped` senza bloccare
    gli altri. Solo il mancato caricamento dei template è fatale.
    """

    def __init__(self, template_store=None, instance_store=None):
        super().__init__()
        self.templates = template_store or TemplateStore()
        self.instances = instance_store or InstanceStore()

    def run_generation(self, as_of, horizon_months=DEFAULT_HORIZON_MONTHS):
        """Esegue un passaggio completo di generazione.

        Args:
            as_of: data di riferimento ("oggi" per l'esecuzione)
            horizon_months: mesi di calendario oltre `as_of` da pre-generare

        Returns:
            GenerationSummary

        Raises:
            TemplateFetchError: se non è possibile leggere i template
        """
        window_end = add_months(as_of, horizon_months)
        summary = GenerationSummary(as_of=as_of, window_end=window_end)
        logger.info('Generazione ricorrenze da %s a %s', as_of, window_end)

        templates = self.templates.list_active_templates_due_before(window_end)

        # gli id si leggono subito: ogni commit fa scadere gli oggetti caricati
        template_ids = [template.id for template in templates]

        for template_id in template_ids:
            summary.templates_processed += 1
            try:
                template = self.templates.get(template_id)
                if template is None:
                    logger.warning('Template %s eliminato durante la generazione', template_id)
                    summary.templates_skipped += 1
                    continue
                created = self.generate_for_template(template, window_end)
                self.db.session.commit()
            except Exception:
                self.db.session.rollback()
                summary.templates_skipped += 1
                logger.exception('Errore nella generazione per il template %s', template_id)
                continue
            summary.instances_generated += created
            if created:
                logger.debug('Template %s: %d istanze create', template_id, created)

        logger.info('Generazione completata: %s', summary.to_dict())
        return summary

    def generate_for_template(self, template, window_end):
        """Crea le istanze mancanti di un template e ne avanza il segnalibro.

        Non esegue il commit: ci pensa `run_generation`.

        Returns:
            numero di istanze create
        """
        staged = []
        last_processed = None
        for candidate_date in self.candidate_dates(template, window_end):
            last_processed = candidate_date
            # controllo esistenza: la data può essere già stata generata
            # (esecuzione doppia, inserimento manuale, segnalibro non aggiornato)
            if self.instances.exists_for_template_on_date(template, candidate_date):
                continue
            staged.append(self.instances.build_instance(template, candidate_date))

        created = self.instances.batch_insert(staged)

        if created:
            self.templates.update_bookmark(
                template.id,
                last_processed,
                next_date(last_processed, template.frequency),
            )
        return created

    def candidate_dates(self, template, window_end):
        """Date candidate per il template: dal segnalibro (escluso) o da start_date
        fino a window_end, interrompendosi alla prima data oltre end_date."""
        end_date = template.end_date
        for candidate_date in expand_window(template.start_date, template.frequency,
                                            window_end, template.last_generated_date):
            if end_date is not None and candidate_date > end_date:
                break
            yield candidate_date

    def preview(self, template, as_of, horizon_months=DEFAULT_HORIZON_MONTHS):
        """Date che la prossima esecuzione creerebbe per il template (nessuna scrittura)"""
        window_end = add_months(as_of, horizon_months)
        return [
            d for d in self.candidate_dates(template, window_end)
            if not self.instances.exists_for_template_on_date(template, d)
        ]
