"""
Colonne comuni alle istanze di transazione (tabelle `expenses` e `income`)
"""
from datetime import datetime, timezone

from sqlalchemy.orm import declared_attr

from recurring_tracker import db


def utcnow():
    return datetime.now(timezone.utc)


class TransactionInstanceMixin:
    """Campi condivisi da spese ed entrate.

    `recurring_template_id` è il riferimento (nullable) al template che ha
    generato la riga; `is_generated` distingue le righe create dal generatore
    da quelle inserite a mano sotto lo stesso template.
    """

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(64), nullable=False, index=True)
    amount = db.Column(db.Numeric(12, 2), nullable=False)
    description = db.Column(db.String(200), nullable=True)
    date = db.Column(db.Date, nullable=False)
    is_recurring = db.Column(db.Boolean, nullable=False, default=False)
    is_generated = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    @declared_attr
    def recurring_template_id(cls):
        # SET NULL: una riga non deve mai puntare a un template inesistente
        return db.Column(
            db.Integer,
            db.ForeignKey('recurring_templates.id', ondelete='SET NULL'),
            nullable=True,
            index=True,
        )

    @declared_attr
    def __table_args__(cls):
        # al massimo una istanza per (template, data); i NULL non collidono
        return (
            db.UniqueConstraint('recurring_template_id', 'date',
                                name=f'uq_{cls.__tablename__}_template_date'),
        )

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'amount': str(self.amount) if self.amount is not None else None,
            'description': self.description,
            'date': self.date.isoformat() if self.date else None,
            'recurring_template_id': self.recurring_template_id,
            'is_generated': bool(self.is_generated),
        }
