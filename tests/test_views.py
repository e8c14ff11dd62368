"""
Test suite for the /recurring HTTP endpoints.
"""

from datetime import date

from recurring_tracker import db
from recurring_tracker.errors import TemplateFetchError
from recurring_tracker.models import Expense, RecurringTemplate
from recurring_tracker.services.stores import TemplateStore


def create_template(app, template_factory, **overrides):
    with app.app_context():
        return template_factory(**overrides).id


class TestGenerateEndpoint:
    """POST /recurring/generate"""

    def test_generate_returns_summary(self, app, client, template_factory):
        create_template(app, template_factory)

        response = client.post('/recurring/generate', json={'as_of': '2025-01-15'})

        assert response.status_code == 200
        data = response.get_json()
        assert data['success'] is True
        assert data['templates_processed'] == 1
        assert data['instances_generated'] == 4
        assert data['templates_skipped'] == 0
        assert data['as_of'] == '2025-01-15'
        assert data['window_end'] == '2025-04-15'

    def test_generate_twice_is_idempotent(self, app, client, template_factory):
        create_template(app, template_factory)

        client.post('/recurring/generate', json={'as_of': '2025-01-15'})
        response = client.post('/recurring/generate', json={'as_of': '2025-01-15'})

        assert response.get_json()['instances_generated'] == 0
        with app.app_context():
            assert Expense.query.count() == 4

    def test_horizon_override(self, app, client, template_factory):
        create_template(app, template_factory)

        response = client.post('/recurring/generate', json={'as_of': '2025-01-15', 'horizon_months': 1})

        assert response.get_json()['instances_generated'] == 2

    def test_invalid_as_of(self, client):
        response = client.post('/recurring/generate', json={'as_of': '15/01/2025'})
        assert response.status_code == 400
        assert response.get_json()['success'] is False

    def test_negative_horizon(self, client):
        response = client.post('/recurring/generate', json={'horizon_months': -1})
        assert response.status_code == 400

    def test_prefetch_failure_returns_500(self, client, monkeypatch):
        def broken(self, window_end):
            raise TemplateFetchError('database is unavailable')

        monkeypatch.setattr(TemplateStore, 'list_active_templates_due_before', broken)

        response = client.post('/recurring/generate', json={'as_of': '2025-01-15'})

        assert response.status_code == 500
        data = response.get_json()
        assert data['success'] is False
        assert 'unavailable' in data['error']


class TestToken:
    """Bearer token protection when RECURRING_TRANSACTION_TOKEN is set."""

    def test_template_endpoints_do_not_require_token(self, app, client):
        app.config['RECURRING_TRANSACTION_TOKEN'] = 's3cret'
        response = client.get('/recurring/templates')
        assert response.status_code == 200
        assert response.get_json()['templates'] == []

    def test_missing_token_is_rejected(self, app, client):
        app.config['RECURRING_TRANSACTION_TOKEN'] = 's3cret'
        response = client.post('/recurring/generate', json={})
        assert response.status_code == 401

    def test_wrong_token_is_rejected(self, app, client):
        app.config['RECURRING_TRANSACTION_TOKEN'] = 's3cret'
        response = client.post('/recurring/generate', json={},
                               headers={'Authorization': 'Bearer nope'})
        assert response.status_code == 401

    def test_valid_token_is_accepted(self, app, client):
        app.config['RECURRING_TRANSACTION_TOKEN'] = 's3cret'
        response = client.post('/recurring/generate', json={'as_of': '2025-01-15'},
                               headers={'Authorization': 'Bearer s3cret'})
        assert response.status_code == 200
        assert response.get_json()['templates_processed'] == 0


class TestTemplateEndpoints:
    """Template actions."""

    def test_create_and_list(self, client):
        response = client.post('/recurring/templates', json={
            'user_id': 'user-1', 'template_type': 'expense', 'amount': '45.50',
            'frequency': 'monthly', 'start_date': '2025-01-05', 'expense_type_id': 'gym',
        })
        assert response.status_code == 201
        assert response.get_json()['template']['amount'] == '45.50'

        response = client.get('/recurring/templates?user_id=user-1')
        templates = response.get_json()['templates']
        assert len(templates) == 1
        assert templates[0]['frequency'] == 'monthly'

    def test_create_invalid(self, client):
        response = client.post('/recurring/templates', json={
            'user_id': 'user-1', 'template_type': 'income', 'amount': '10',
            'frequency': 'monthly', 'start_date': '2025-01-05',
        })
        assert response.status_code == 400
        assert response.get_json()['success'] is False

    def test_detail_with_upcoming_dates(self, app, client, template_factory):
        template_id = create_template(app, template_factory)

        response = client.get(f'/recurring/templates/{template_id}?as_of=2025-01-15')

        data = response.get_json()
        assert data['template']['id'] == template_id
        assert data['upcoming'] == ['2025-01-01', '2025-02-01', '2025-03-01', '2025-04-01']

    def test_detail_not_found(self, client):
        assert client.get('/recurring/templates/99').status_code == 404

    def test_toggle(self, app, client, template_factory):
        template_id = create_template(app, template_factory)

        response = client.post(f'/recurring/templates/{template_id}/toggle')

        assert response.status_code == 200
        assert response.get_json()['is_active'] is False

    def test_edit_all_future(self, app, client, template_factory):
        template_id = create_template(app, template_factory)
        client.post('/recurring/generate', json={'as_of': '2025-01-01', 'horizon_months': 1})

        response = client.post(f'/recurring/templates/{template_id}/edit',
                               json={'today': '2025-01-15', 'amount': '1300.00'})

        assert response.status_code == 200
        assert response.get_json()['result']['deleted'] == 1
        with app.app_context():
            assert [e.date for e in Expense.query.all()] == [date(2025, 1, 1)]

    def test_edit_not_found(self, client):
        response = client.post('/recurring/templates/5/edit', json={'amount': '10'})
        assert response.status_code == 404

    def test_delete(self, app, client, template_factory):
        template_id = create_template(app, template_factory)
        client.post('/recurring/generate', json={'as_of': '2025-01-01', 'horizon_months': 1})

        response = client.post(f'/recurring/templates/{template_id}/delete', json={'today': '2025-01-15'})

        assert response.status_code == 200
        with app.app_context():
            assert db.session.get(RecurringTemplate, template_id) is None
            rows = Expense.query.all()
            assert [(e.date, e.recurring_template_id) for e in rows] == [(date(2025, 1, 1), None)]

    def test_detach(self, app, client, template_factory):
        create_template(app, template_factory)
        client.post('/recurring/generate', json={'as_of': '2025-01-01', 'horizon_months': 0})
        with app.app_context():
            instance_id = Expense.query.one().id

        response = client.post(f'/recurring/instances/expense/{instance_id}/detach')

        assert response.status_code == 200
        with app.app_context():
            assert db.session.get(Expense, instance_id).recurring_template_id is None

    def test_detach_bad_kind(self, client):
        response = client.post('/recurring/instances/transfer/1/detach')
        assert response.status_code == 400
