"""
Modello per i template ricorrenti (spese/entrate)

Contiene le informazioni necessarie per generare le istanze datate:
- template_type: 'expense' o 'income'
- amount / description e i campi specifici del tipo
  (expense_type_id e split per le spese, source per le entrate)
- frequency, start_date, end_date (inclusiva, opzionale)
- last_generated_date / next_generation_date: il "segnalibro" della generazione
- is_active: flag per mettere in pausa il template senza eliminarlo
"""
from recurring_tracker import db
from recurring_tracker.defaults import FREQUENCY_MONTHLY, TEMPLATE_TYPE_EXPENSE
from recurring_tracker.models.base import utcnow


class RecurringTemplate(db.Model):
    __tablename__ = 'recurring_templates'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(64), nullable=False, index=True)
    template_type = db.Column(db.String(10), nullable=False, default=TEMPLATE_TYPE_EXPENSE)

    amount = db.Column(db.Numeric(12, 2), nullable=False)
    description = db.Column(db.String(200), nullable=True)

    # solo spese
    expense_type_id = db.Column(db.String(64), nullable=True)
    is_split = db.Column(db.Boolean, nullable=False, default=False)
    original_amount = db.Column(db.Numeric(12, 2), nullable=True)
    split_with = db.Column(db.String(200), nullable=True)

    # solo entrate
    source = db.Column(db.String(200), nullable=True)

    frequency = db.Column(db.String(20), nullable=False, default=FREQUENCY_MONTHLY)
    start_date = db.Column(db.Date, nullable=False)
    end_date = db.Column(db.Date, nullable=True)  # NULL = senza scadenza

    last_generated_date = db.Column(db.Date, nullable=True)  # NULL = mai generato
    next_generation_date = db.Column(db.Date, nullable=True, index=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    @property
    def is_expense(self):
        return self.template_type == TEMPLATE_TYPE_EXPENSE

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'template_type': self.template_type,
            'amount': str(self.amount) if self.amount is not None else None,
            'description': self.description,
            'expense_type_id': self.expense_type_id,
            'is_split': bool(self.is_split),
            'original_amount': str(self.original_amount) if self.original_amount is not None else None,
            'split_with': self.split_with,
            'source': self.source,
            'frequency': self.frequency,
            'start_date': self.start_date.isoformat() if self.start_date else None,
            'end_date': self.end_date.isoformat() if self.end_date else None,
            'last_generated_date': self.last_generated_date.isoformat() if self.last_generated_date else None,
            'next_generation_date': self.next_generation_date.isoformat() if self.next_generation_date else None,
            'is_active': bool(self.is_active),
        }

    def __repr__(self):
        return f"<RecurringTemplate {self.id} {self.template_type} {self.amount} {self.frequency}>"
