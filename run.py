"""Entry point per l'applicazione.

Questo script avvia l'app Flask (endpoint /recurring) e può inizializzare il
database se la variabile d'ambiente `INIT_DB` è impostata (es. INIT_DB=1).
"""

import os
from recurring_tracker import create_app, db


def init_database():
    """Crea le tabelle dei template e delle istanze.
    Viene eseguita solo quando INIT_DB=1 per evitare side-effect non voluti
    in produzione, dove lo schema è gestito dalle migrazioni.
    """
    # Import dei modelli necessari (ritardato per evitare import circolari)
    import recurring_tracker.models  # noqa: F401

    db.create_all()


def main():
    app = create_app()

    # Optional DB init (usare solo in fase di provisioning)
    if os.environ.get('INIT_DB') == '1':
        with app.app_context():
            init_database()

    app.run(host=app.config.get('HOST', '0.0.0.0'), port=app.config.get('PORT', 5001), debug=False)


if __name__ == '__main__':
    main()
