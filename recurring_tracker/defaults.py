"""
Valori predefiniti del dominio ricorrenze, separati dalla configurazione operativa.

Questo modulo contiene i valori ammessi per tipi e cadenze dei template e i
default della generazione; le impostazioni runtime (DB, token, livelli di log)
restano in `config.py`.
"""

# Tipi di template: determinano la tabella delle istanze (expenses / income)
TEMPLATE_TYPE_EXPENSE = 'expense'
TEMPLATE_TYPE_INCOME = 'income'
TEMPLATE_TYPES = (TEMPLATE_TYPE_EXPENSE, TEMPLATE_TYPE_INCOME)

# Cadenze supportate
FREQUENCY_WEEKLY = 'weekly'
FREQUENCY_BIWEEKLY = 'biweekly'
FREQUENCY_MONTHLY = 'monthly'
FREQUENCY_QUARTERLY = 'quarterly'
FREQUENCY_YEARLY = 'yearly'
FREQUENCIES = (
    FREQUENCY_WEEKLY,
    FREQUENCY_BIWEEKLY,
    FREQUENCY_MONTHLY,
    FREQUENCY_QUARTERLY,
    FREQUENCY_YEARLY,
)

# Orizzonte di generazione in mesi di calendario
DEFAULT_HORIZON_MONTHS = 3
