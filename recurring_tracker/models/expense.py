"""Modello per le spese (istanze di tipo `expense`)"""
from recurring_tracker import db
from recurring_tracker.models.base import TransactionInstanceMixin


class Expense(TransactionInstanceMixin, db.Model):
    __tablename__ = 'expenses'

    expense_type_id = db.Column(db.String(64), nullable=True)
    is_split = db.Column(db.Boolean, nullable=False, default=False)
    original_amount = db.Column(db.Numeric(12, 2), nullable=True)  # importo prima della divisione
    split_with = db.Column(db.String(200), nullable=True)

    def to_dict(self):
        data = super().to_dict()
        data.update({
            'expense_type_id': self.expense_type_id,
            'is_split': bool(self.is_split),
            'original_amount': str(self.original_amount) if self.original_amount is not None else None,
            'split_with': self.split_with,
        })
        return data

    def __repr__(self):
        return f'<Expense {self.date} {self.amount} template={self.recurring_template_id}>'
