"""
Shared pytest fixtures for the recurring generator tests.
"""

import pytest
from datetime import date
from decimal import Decimal

from recurring_tracker import create_app, db as _db
from recurring_tracker.models import RecurringTemplate


@pytest.fixture
def app():
    """Application on a fresh in-memory SQLite database."""
    application = create_app('testing')
    yield application


@pytest.fixture
def app_ctx(app):
    """Push an application context for service-level tests."""
    with app.app_context():
        yield app
        _db.session.remove()


@pytest.fixture
def db(app_ctx):
    return _db


@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture
def template_factory():
    """Create and commit a RecurringTemplate (requires an active app context).

    Defaults describe the "$1200 rent, monthly, starting Jan 1" expense.
    """
    def _create(**overrides):
        fields = dict(
            user_id='user-1',
            template_type='expense',
            amount=Decimal('1200.00'),
            description='Rent',
            expense_type_id='housing',
            frequency='monthly',
            start_date=date(2025, 1, 1),
        )
        if overrides.get('template_type') == 'income':
            fields.pop('expense_type_id')
            fields.update(description='Salary', source='ACME Corp')
        fields.update(overrides)
        template = RecurringTemplate(**fields)
        _db.session.add(template)
        _db.session.commit()
        return template
    return _create
