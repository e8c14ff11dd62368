"""Eccezioni del dominio ricorrenze"""


class RecurringError(Exception):
    """Base per gli errori del generatore di ricorrenze"""


class InvalidFrequencyError(RecurringError, ValueError):
    """Cadenza non riconosciuta"""

    def __init__(self, frequency):
        self.frequency = frequency
        super().__init__(f"Cadenza non valida: {frequency!r}")


class TemplateValidationError(RecurringError, ValueError):
    """Campi del template non validi in creazione o modifica"""


class TemplateFetchError(RecurringError):
    """Impossibile leggere i template: errore fatale per l'intera esecuzione"""
