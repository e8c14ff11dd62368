"""Modello per le entrate (istanze di tipo `income`)"""
from recurring_tracker import db
from recurring_tracker.models.base import TransactionInstanceMixin


class Income(TransactionInstanceMixin, db.Model):
    __tablename__ = 'income'

    source = db.Column(db.String(200), nullable=True)

    def to_dict(self):
        data = super().to_dict()
        data['source'] = self.source
        return data

    def __repr__(self):
        return f'<Income {self.date} {self.amount} ({self.source}) template={self.recurring_template_id}>'
