"""Configurazione per il generatore di transazioni ricorrenti"""
import os


class Config:
    """Configurazione principale dell'applicazione"""

    # Database
    # Di default un file SQLite nella cartella `db/` alla root del progetto;
    # DATABASE_URL accetta qualunque URL SQLAlchemy (es. postgresql://...).
    BASE_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        'DATABASE_URL',
        f'sqlite:///{os.path.join(BASE_DIR, "db", "recurring.db")}'
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Flask
    SECRET_KEY = os.environ.get('SECRET_KEY', 'recurring-tracker-dev-key')

    # Server
    HOST = '0.0.0.0'
    PORT = 5001

    # Generazione ricorrenze
    # Bearer token richiesto da POST /recurring/generate (vuoto = nessun controllo)
    RECURRING_TRANSACTION_TOKEN = os.environ.get('RECURRING_TRANSACTION_TOKEN')
    RECURRING_HORIZON_MONTHS = int(os.environ.get('RECURRING_HORIZON_MONTHS', 3))

    # Logging
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')


class TestingConfig(Config):
    """Configurazione per i test: database in memoria"""
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    RECURRING_TRANSACTION_TOKEN = None
    RECURRING_HORIZON_MONTHS = 3
    LOG_LEVEL = 'DEBUG'


config = {
    'default': Config,
    'testing': TestingConfig,
}
