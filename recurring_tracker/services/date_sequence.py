"""
Aritmetica di calendario per le ricorrenze (nessun accesso al database).

I passi mensili/trimestrali/annuali usano `relativedelta`, che riporta il
giorno all'ultimo giorno valido del mese di arrivo: 31/01 + 1 mese = 28/02
(29/02 negli anni bisestili) e 29/02 + 1 anno = 28/02. Le sequenze avanzano
dall'occorrenza precedente, quindi un template che parte il 31/01 prosegue
28/02, 28/03, 28/04, ... e non torna più al 31.
"""
from datetime import timedelta

from dateutil.relativedelta import relativedelta

from recurring_tracker.defaults import (
    FREQUENCY_BIWEEKLY,
    FREQUENCY_MONTHLY,
    FREQUENCY_QUARTERLY,
    FREQUENCY_WEEKLY,
    FREQUENCY_YEARLY,
)
from recurring_tracker.errors import InvalidFrequencyError

# passo di avanzamento per ciascuna cadenza
FREQUENCY_STEPS = {
    FREQUENCY_WEEKLY: timedelta(days=7),
    FREQUENCY_BIWEEKLY: timedelta(days=14),
    FREQUENCY_MONTHLY: relativedelta(months=1),
    FREQUENCY_QUARTERLY: relativedelta(months=3),
    FREQUENCY_YEARLY: relativedelta(years=1),
}


def next_date(current, frequency):
    """Avanza `current` di un periodo della cadenza indicata.

    Raises:
        InvalidFrequencyError: se la cadenza non è tra quelle supportate
    """
    try:
        step = FREQUENCY_STEPS[frequency]
    except (KeyError, TypeError):
        raise InvalidFrequencyError(frequency) from None
    return current + step


def add_months(current, months):
    """Somma mesi di calendario (usato per la fine della finestra di generazione)"""
    return current + relativedelta(months=months)


def expand_window(start_date, frequency, window_end, resume_after=None):
    """Genera le occorrenze fino a `window_end` incluso.

    Senza `resume_after` la prima data è `start_date`; con `resume_after` la
    prima data è `next_date(resume_after)`, cioè si riprende escludendo ciò
    che è già stato generato. Il generatore è finito (limitato da
    `window_end`) e ogni chiamata ne restituisce uno nuovo.
    """
    if frequency not in FREQUENCY_STEPS:
        raise InvalidFrequencyError(frequency)

    if resume_after is None:
        current = start_date
    else:
        current = next_date(resume_after, frequency)

    while current <= window_end:
        yield current
        current = next_date(current, frequency)
