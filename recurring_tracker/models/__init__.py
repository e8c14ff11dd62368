"""
Modelli del database
"""
from recurring_tracker.defaults import TEMPLATE_TYPE_EXPENSE, TEMPLATE_TYPE_INCOME
from recurring_tracker.models.recurring_template import RecurringTemplate
from recurring_tracker.models.expense import Expense
from recurring_tracker.models.income import Income

# tabella delle istanze per tipo di template
INSTANCE_MODELS = {
    TEMPLATE_TYPE_EXPENSE: Expense,
    TEMPLATE_TYPE_INCOME: Income,
}


def instance_model_for(template_type):
    """Restituisce il modello delle istanze (Expense o Income) per il tipo dato"""
    try:
        return INSTANCE_MODELS[template_type]
    except KeyError:
        raise ValueError(f"Tipo di template non valido: {template_type!r}") from None


__all__ = ['RecurringTemplate', 'Expense', 'Income', 'INSTANCE_MODELS', 'instance_model_for']
