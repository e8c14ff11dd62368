"""
Servizio base per la gestione della business logic
"""
from recurring_tracker import db
from recurring_tracker.services.date_sequence import add_months, expand_window, next_date

# Esporta le funzioni per l'import diretto
__all__ = ['BaseService', 'next_date', 'expand_window', 'add_months']


class BaseService:
    """Classe base per i servizi con metodi comuni"""

    def __init__(self):
        self.db = db

    def commit(self):
        """Esegue il commit della sessione; in caso di errore fa rollback e rilancia"""
        try:
            self.db.session.commit()
        except Exception:
            self.db.session.rollback()
            raise
