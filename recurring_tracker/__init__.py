"""Generatore di transazioni ricorrenti (spese/entrate) su Flask + SQLAlchemy"""

import logging
import os

from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import event

from recurring_tracker.config import config

# Istanze globali
db = SQLAlchemy()


def configure_logging(app):
    """Imposta il livello del logger del pacchetto da LOG_LEVEL"""
    level = app.config.get('LOG_LEVEL', 'INFO')
    package_logger = logging.getLogger('recurring_tracker')
    package_logger.setLevel(level)
    if not logging.getLogger().handlers and not package_logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter('%(asctime)s %(levelname)s %(name)s: %(message)s'))
        package_logger.addHandler(handler)


def configure_sqlite(engine):
    """Chiavi esterne attive e SAVEPOINT affidabili con pysqlite.

    Il driver sqlite3 gestisce da sé BEGIN/COMMIT e non supporta bene i
    SAVEPOINT usati dall'inserimento riga per riga: lasciamo a SQLAlchemy
    l'emissione di BEGIN.
    """
    @event.listens_for(engine, 'connect')
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute('PRAGMA foreign_keys=ON')
        cursor.close()

    @event.listens_for(engine, 'begin')
    def _on_begin(conn):
        conn.exec_driver_sql('BEGIN')


def create_app(config_name='default'):
    """Factory pattern per creare l'applicazione Flask"""
    app = Flask(__name__)

    app.config.from_object(config[config_name])

    configure_logging(app)

    # Inizializza le estensioni
    db.init_app(app)

    # Importa e registra i blueprint
    from recurring_tracker.views.recurring import recurring_bp
    app.register_blueprint(recurring_bp, url_prefix='/recurring')

    # Con SQLite creiamo le tabelle all'avvio (locale e test); con altri
    # database lo schema è gestito dalle migrazioni.
    db_uri = app.config.get('SQLALCHEMY_DATABASE_URI', '')
    if db_uri.startswith('sqlite:'):
        if db_uri.startswith('sqlite:///'):
            os.makedirs(os.path.dirname(db_uri[len('sqlite:///'):]) or '.', exist_ok=True)
        with app.app_context():
            configure_sqlite(db.engine)
            # registra i modelli nei metadata prima di create_all
            import recurring_tracker.models  # noqa: F401
            db.create_all()

    return app
