"""Comandi da riga di comando per lo scheduler esterno.

- `recurring-generate`: genera le istanze ricorrenti fino a as_of + N mesi
  e stampa il riepilogo in JSON (exit code 1 se i template non sono leggibili)
- `recurring-fix-bookmarks`: ricalcola next_generation_date dei template attivi

Uso: eseguire nello stesso ambiente dell'app Flask (usa create_app()).
"""
import argparse
import json
import logging
import sys
from datetime import date, datetime

from recurring_tracker import create_app
from recurring_tracker.errors import TemplateFetchError

logger = logging.getLogger(__name__)


def _iso_date(value):
    try:
        return datetime.strptime(value, '%Y-%m-%d').date()
    except ValueError:
        raise argparse.ArgumentTypeError(f"data non valida: {value!r} (atteso YYYY-MM-DD)") from None


def generate_main(argv=None, app=None):
    parser = argparse.ArgumentParser(description='Genera le transazioni dai template ricorrenti')
    parser.add_argument('--as-of', type=_iso_date, default=None,
                        help='Data di riferimento YYYY-MM-DD (default oggi)')
    parser.add_argument('--horizon-months', type=int, default=None,
                        help='Mesi di calendario da pre-generare (default da configurazione, 3)')
    parser.add_argument('--config', default='default', help='Nome della configurazione (default: default)')
    args = parser.parse_args(argv)

    if app is None:
        app = create_app(args.config)
    with app.app_context():
        from recurring_tracker.services.generation_service import RecurringGenerationService

        as_of = args.as_of or date.today()
        horizon = args.horizon_months
        if horizon is None:
            horizon = app.config.get('RECURRING_HORIZON_MONTHS', 3)

        try:
            summary = RecurringGenerationService().run_generation(as_of, horizon_months=horizon)
        except TemplateFetchError as e:
            logger.error('Generazione ricorrenze fallita: %s', e)
            print(json.dumps({'success': False, 'error': str(e)}))
            return 1

        print(json.dumps({'success': True, **summary.to_dict()}))
        return 0


def fix_bookmarks_main(argv=None, app=None):
    parser = argparse.ArgumentParser(description='Ricalcola next_generation_date dei template attivi')
    parser.add_argument('--config', default='default', help='Nome della configurazione (default: default)')
    args = parser.parse_args(argv)

    if app is None:
        app = create_app(args.config)
    with app.app_context():
        from recurring_tracker.services.recurring_template_service import RecurringTemplateService

        result = RecurringTemplateService().recompute_next_generation_dates()
        print(f"Aggiornati {result['updated']} template attivi ({result['failed']} con cadenza non valida)")
        return 0


def main():
    sys.exit(generate_main())


def fix_bookmarks():
    sys.exit(fix_bookmarks_main())


if __name__ == '__main__':
    main()
