"""Tests for /api/admin routes -- rule trigger, rules CRUD, manual search + import."""
import pytest
from unittest.mock import MagicMock, patch

from app.errors import NotFoundError, UpstreamError
from app.models.discovery_rule import AutoDiscoveryRule
from app.pipeline.base import Outcome, RunSummary
from app.pipeline.tiers import FollowerBounds


@pytest.fixture
def mock_runner():
    with patch('app.routes.admin.RuleRunner') as cls:
        yield cls.return_value


@pytest.fixture
def mock_youtube(make_channel):
    channels = {
        'UC_small': make_channel('UC_small', subscribers=5000),
        'UC_mid': make_channel('UC_mid', subscribers=25000),
        'UC_midplus': make_channel('UC_midplus', subscribers=40000),
        'UC_big': make_channel('UC_big', subscribers=60000),
    }
    with patch('app.routes.admin.YouTubeClient') as cls:
        client = cls.return_value
        client.search.return_value = list(channels)
        client.fetch_stats.return_value = channels
        yield client


class TestOperatorGate:

    def test_missing_identity_is_401(self, client):
        resp = client.get('/api/admin/discovery-rules')
        assert resp.status_code == 401
        assert resp.get_json() == {'error': 'Unauthorized'}

    def test_non_operator_is_401(self, client, mock_runner):
        resp = client.post('/api/admin/auto-discover/run', json={'ruleId': 1},
                           headers={'X-User-Email': 'viewer@example.com'})
        assert resp.status_code == 401
        mock_runner.run_rule.assert_not_called()


class TestRunRule:

    def test_returns_summary(self, client, operator_headers, mock_runner):
        summary = RunSummary(found=1)
        summary.add(Outcome.imported('UC_mid', 3))
        mock_runner.run_rule.return_value = summary

        resp = client.post('/api/admin/auto-discover/run', json={'ruleId': 5}, headers=operator_headers)

        assert resp.status_code == 200
        data = resp.get_json()
        assert data['found'] == 1
        assert data['imported'] == 1
        assert 'errors' not in data
        mock_runner.run_rule.assert_called_once_with(5)

    def test_missing_rule_id_is_400(self, client, operator_headers, mock_runner):
        resp = client.post('/api/admin/auto-discover/run', json={}, headers=operator_headers)
        assert resp.status_code == 400
        assert resp.get_json()['error'] == 'ruleId is required'

    def test_unknown_rule_is_404(self, client, operator_headers, mock_runner):
        mock_runner.run_rule.side_effect = NotFoundError('rule', 99)
        resp = client.post('/api/admin/auto-discover/run', json={'ruleId': 99}, headers=operator_headers)
        assert resp.status_code == 404
        assert resp.get_json() == {'error': 'Rule not found'}

    def test_missing_api_key_is_500(self, app, client, operator_headers, mock_runner):
        app.config['GOOGLE_API_KEY'] = None
        resp = client.post('/api/admin/auto-discover/run', json={'ruleId': 1}, headers=operator_headers)
        assert resp.status_code == 500
        assert 'GOOGLE_API_KEY' in resp.get_json()['error']


class TestDiscoveryRules:

    def test_create_then_list(self, client, operator_headers):
        resp = client.post('/api/admin/discovery-rules', headers=operator_headers, json={
            'name': 'Van life', 'search_queries': 'van life, vanlife build ', 'min_followers': 5000,
        })
        assert resp.status_code == 201
        created = resp.get_json()
        assert created['search_queries'] == ['van life', 'vanlife build']
        assert created['is_active'] is True

        rules = client.get('/api/admin/discovery-rules', headers=operator_headers).get_json()
        assert [r['name'] for r in rules] == ['Van life']

    @pytest.mark.parametrize('payload, message', [
        ({'search_queries': ['q']}, 'Name is required'),
        ({'name': 'x', 'search_queries': []}, 'At least one search query is required'),
        ({'name': 'x', 'search_queries': ['q'], 'min_followers': -1}, 'min_followers must be >= 0'),
        ({'name': 'x', 'search_queries': ['q'], 'max_followers': 'lots'}, 'max_followers must be an integer'),
        ({'name': 'x', 'search_queries': ['q'], 'min_followers': 10, 'max_followers': 5},
         'min_followers must not exceed max_followers'),
    ])
    def test_create_validation(self, client, operator_headers, payload, message):
        resp = client.post('/api/admin/discovery-rules', json=payload, headers=operator_headers)
        assert resp.status_code == 400
        assert resp.get_json()['error'] == message

    def test_patch_updates_fields(self, client, operator_headers, make_rule, db_session):
        rule_id = make_rule()
        resp = client.patch('/api/admin/discovery-rules', headers=operator_headers,
                            json={'id': rule_id, 'is_active': False, 'max_followers': 80000})
        assert resp.status_code == 200
        assert resp.get_json() == {'success': True}
        db_session.expire_all()
        row = db_session.get(AutoDiscoveryRule, rule_id)
        assert row.is_active is False
        assert row.max_followers == 80000
        assert row.name == 'Travel micro-creators'

    def test_patch_requires_id(self, client, operator_headers):
        resp = client.patch('/api/admin/discovery-rules', json={'name': 'x'}, headers=operator_headers)
        assert resp.status_code == 400

    @pytest.mark.parametrize('method', ['patch', 'delete'])
    def test_non_integer_id_is_400(self, client, operator_headers, method):
        resp = getattr(client, method)('/api/admin/discovery-rules', json={'id': 'abc', 'name': 'x'},
                                       headers=operator_headers)
        assert resp.status_code == 400
        assert resp.get_json()['error'] == 'id must be an integer'

    def test_delete_requires_id(self, client, operator_headers):
        resp = client.delete('/api/admin/discovery-rules', json={}, headers=operator_headers)
        assert resp.status_code == 400
        assert resp.get_json()['error'] == 'id is required'

    def test_numeric_string_id_is_accepted(self, client, operator_headers, make_rule, db_session):
        rule_id = make_rule()
        resp = client.patch('/api/admin/discovery-rules', headers=operator_headers,
                            json={'id': str(rule_id), 'is_active': False})
        assert resp.status_code == 200
        db_session.expire_all()
        assert db_session.get(AutoDiscoveryRule, rule_id).is_active is False

    def test_zero_max_is_stored_as_no_upper_bound(self, client, operator_headers):
        resp = client.post('/api/admin/discovery-rules', headers=operator_headers, json={
            'name': 'Anything', 'search_queries': ['q'], 'min_followers': 1000, 'max_followers': 0,
        })
        assert resp.status_code == 201
        assert resp.get_json()['max_followers'] is None

    def test_patch_zero_max_clears_upper_bound(self, client, operator_headers, make_rule, db_session):
        rule_id = make_rule()
        resp = client.patch('/api/admin/discovery-rules', headers=operator_headers,
                            json={'id': rule_id, 'max_followers': 0})
        assert resp.status_code == 200
        db_session.expire_all()
        assert db_session.get(AutoDiscoveryRule, rule_id).max_followers is None

    def test_patch_unknown_rule_is_404(self, client, operator_headers):
        resp = client.patch('/api/admin/discovery-rules', json={'id': 404, 'name': 'x'}, headers=operator_headers)
        assert resp.status_code == 404

    def test_delete(self, client, operator_headers, make_rule, db_session):
        rule_id = make_rule()
        resp = client.delete('/api/admin/discovery-rules', json={'id': rule_id}, headers=operator_headers)
        assert resp.status_code == 200
        db_session.expire_all()
        assert db_session.get(AutoDiscoveryRule, rule_id) is None


class TestYouTubeSearch:

    def test_filters_and_sorts_by_subscribers(self, client, operator_headers, mock_youtube):
        resp = client.post('/api/admin/youtube/search', headers=operator_headers,
                           json={'query': 'van life', 'minSubs': 10000, 'maxSubs': 50000})
        assert resp.status_code == 200
        channels = resp.get_json()['channels']
        assert [c['id'] for c in channels] == ['UC_midplus', 'UC_mid']
        assert channels[0]['subscriberCount'] == 40000
        mock_youtube.search.assert_called_once_with('van life')

    def test_defaults_when_bounds_missing(self, client, operator_headers, mock_youtube):
        resp = client.post('/api/admin/youtube/search', headers=operator_headers, json={'query': 'van life'})
        assert len(resp.get_json()['channels']) == 4

    def test_query_required(self, client, operator_headers, mock_youtube):
        resp = client.post('/api/admin/youtube/search', headers=operator_headers, json={'query': '  '})
        assert resp.status_code == 400
        assert resp.get_json()['error'] == 'Query required'

    def test_no_results(self, client, operator_headers, mock_youtube):
        mock_youtube.search.return_value = []
        resp = client.post('/api/admin/youtube/search', headers=operator_headers, json={'query': 'zzzz'})
        assert resp.get_json() == {'channels': []}
        mock_youtube.fetch_stats.assert_not_called()

    def test_upstream_error_is_502(self, client, operator_headers, mock_youtube):
        mock_youtube.search.side_effect = UpstreamError('YouTube API error: quotaExceeded', 403)
        resp = client.post('/api/admin/youtube/search', headers=operator_headers, json={'query': 'van life'})
        assert resp.status_code == 502
        assert 'quotaExceeded' in resp.get_json()['error']


class TestYouTubeImport:

    def test_imports_selected_channels(self, client, operator_headers, mock_runner):
        summary = RunSummary(found=2)
        summary.add(Outcome.imported('UC_a', 1))
        summary.add(Outcome.failed('Import error for B: locked', channel_id='UC_b'))
        mock_runner.import_channels.return_value = summary

        resp = client.post('/api/admin/youtube/import', headers=operator_headers, json={
            'channels': [{'id': 'UC_a'}, {'id': 'UC_b'}], 'niche': ['travel'],
        })

        assert resp.status_code == 200
        assert resp.get_json() == {'imported': 1, 'errors': ['Import error for B: locked']}
        mock_runner.import_channels.assert_called_once_with([{'id': 'UC_a'}, {'id': 'UC_b'}], niche=['travel'])

    def test_empty_list_is_400(self, client, operator_headers, mock_runner):
        resp = client.post('/api/admin/youtube/import', headers=operator_headers, json={'channels': []})
        assert resp.status_code == 400
        assert resp.get_json()['error'] == 'No channels to import'

    def test_string_niche_becomes_single_tag(self, client, operator_headers, mock_runner):
        mock_runner.import_channels.return_value = RunSummary()
        resp = client.post('/api/admin/youtube/import', headers=operator_headers, json={
            'channels': [{'id': 'UC_a'}], 'niche': 'travel',
        })
        assert resp.status_code == 200
        mock_runner.import_channels.assert_called_once_with([{'id': 'UC_a'}], niche=['travel'])

    @pytest.mark.parametrize('niche', [123, ['travel', 5], {'tag': 'travel'}])
    def test_invalid_niche_is_400(self, client, operator_headers, mock_runner, niche):
        resp = client.post('/api/admin/youtube/import', headers=operator_headers, json={
            'channels': [{'id': 'UC_a'}], 'niche': niche,
        })
        assert resp.status_code == 400
        assert resp.get_json()['error'] == 'niche must be a string or a list of strings'
        mock_runner.import_channels.assert_not_called()


class TestSweep:

    @pytest.fixture(autouse=True)
    def _summary(self, mock_runner):
        summary = RunSummary(found=2, queries_run=14)
        summary.add(Outcome.imported('UC_a', 1))
        summary.add(Outcome.imported('UC_b', 2))
        mock_runner.sweep.return_value = summary

    def test_default_bounds(self, client, operator_headers, mock_runner):
        resp = client.post('/api/admin/sweep', headers=operator_headers)
        assert resp.status_code == 200
        assert resp.get_json() == {'success': True, 'found': 2, 'imported': 2, 'queries': 14}
        mock_runner.sweep.assert_called_once_with(FollowerBounds(10000, 500000))

    def test_custom_bounds(self, client, operator_headers, mock_runner):
        client.post('/api/admin/sweep', headers=operator_headers, json={'minSubs': 0, 'maxSubs': 20000})
        mock_runner.sweep.assert_called_once_with(FollowerBounds(0, 20000))

    def test_zero_max_uses_default(self, client, operator_headers, mock_runner):
        client.post('/api/admin/sweep', headers=operator_headers, json={'minSubs': 5000, 'maxSubs': 0})
        mock_runner.sweep.assert_called_once_with(FollowerBounds(5000, 500000))

    def test_min_above_max_is_400(self, client, operator_headers, mock_runner):
        resp = client.post('/api/admin/sweep', headers=operator_headers, json={'minSubs': 9000, 'maxSubs': 100})
        assert resp.status_code == 400
        assert resp.get_json()['error'] == 'minSubs must not exceed maxSubs'
        mock_runner.sweep.assert_not_called()

    def test_errors_are_reported(self, client, operator_headers, mock_runner):
        mock_runner.sweep.return_value.add(Outcome.failed('YouTube API error: quotaExceeded', query='vlog'))
        data = client.post('/api/admin/sweep', headers=operator_headers).get_json()
        assert data['errors'] == ['YouTube API error: quotaExceeded']

    def test_non_operator_is_401(self, client, mock_runner):
        resp = client.post('/api/admin/sweep', headers={'X-User-Email': 'viewer@example.com'})
        assert resp.status_code == 401
        mock_runner.sweep.assert_not_called()
