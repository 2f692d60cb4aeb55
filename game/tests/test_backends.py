from unittest.mock import MagicMock, patch

import requests
from django.db import DatabaseError
from django.test import TestCase

from game.conf import GameConfig
from game.models import GameSave
from game.services.backends import BackendError, DatabaseBackend, HttpBackend, get_backend
from game.tasks import push_remote_save


def http_response(status=200, payload=None):
    response = MagicMock()
    response.status_code = status
    response.json.return_value = payload if payload is not None else {}
    if status >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(f"{status} error")
    return response


class HttpBackendTests(TestCase):
    def setUp(self):
        self.config = GameConfig.from_settings(remote_api_base='http://realms.test/api/')
        self.session = MagicMock()
        self.backend = HttpBackend(self.config, session=self.session)

    def test_save_posts_snapshot_with_user_id(self):
        self.session.request.return_value = http_response(payload={'success': True})
        self.backend.save('12', {'player': {}})
        self.session.request.assert_called_once_with(
            'POST', 'http://realms.test/api/game/save/',
            timeout=self.config.remote_timeout_s, json={'player': {}, 'user_id': '12'},
        )

    def test_save_rejected_by_server(self):
        self.session.request.return_value = http_response(payload={'success': False, 'message': 'nope'})
        with self.assertRaises(BackendError) as ctx:
            self.backend.save('12', {})
        self.assertEqual(ctx.exception.code, 'save_failed')

    def test_load_missing_is_none(self):
        self.session.request.return_value = http_response(status=404)
        self.assertIsNone(self.backend.load('12'))

    def test_server_error_maps_to_backend_error(self):
        self.session.request.return_value = http_response(status=500)
        with self.assertRaises(BackendError) as ctx:
            self.backend.load('12')
        self.assertEqual(ctx.exception.code, 'http_error')

    def test_connection_error(self):
        self.session.request.side_effect = requests.ConnectionError('refused')
        with self.assertRaises(BackendError):
            self.backend.record_spend(10)

    def test_invalid_json(self):
        response = http_response()
        response.json.side_effect = ValueError('no json')
        self.session.request.return_value = response
        with self.assertRaises(BackendError) as ctx:
            self.backend.load('12')
        self.assertEqual(ctx.exception.code, 'bad_response')

    def test_non_object_reply(self):
        response = http_response()
        response.json.return_value = None
        self.session.request.return_value = response
        with self.assertRaises(BackendError) as ctx:
            self.backend.record_spend(25)
        self.assertEqual(ctx.exception.code, 'bad_response')

    def test_owner_bank_sends_admin_header(self):
        self.session.request.return_value = http_response(payload={'success': True, 'owner_bank_gold': 3})
        self.assertEqual(self.backend.owner_bank('1')['owner_bank_gold'], 3)
        _, kwargs = self.session.request.call_args
        self.assertEqual(kwargs['headers'], {'X-Admin-User-Id': '1'})


class DatabaseBackendTests(TestCase):
    def setUp(self):
        self.backend = DatabaseBackend(GameConfig.from_settings())

    def test_save_load_delete(self):
        self.backend.save('4', {'user_id': '4'})
        self.backend.save('4', {'user_id': '4', 'v': 2})
        self.assertEqual(self.backend.load('4'), {'user_id': '4', 'v': 2})
        self.assertTrue(self.backend.delete('4'))
        self.assertIsNone(self.backend.load('4'))
        self.assertFalse(self.backend.delete('4'))

    def test_invalid_spend(self):
        with self.assertRaises(BackendError) as ctx:
            self.backend.record_spend(0)
        self.assertEqual(ctx.exception.code, 'invalid_amount')

    def test_database_error_wrapped(self):
        with patch.object(GameSave.objects, 'update_or_create', side_effect=DatabaseError('locked')):
            with self.assertRaises(BackendError) as ctx:
                self.backend.save('4', {})
        self.assertEqual(ctx.exception.code, 'save_failed')

    def test_get_backend_uses_configured_path(self):
        config = GameConfig.from_settings(remote_backend='game.services.backends.HttpBackend')
        self.assertIsInstance(get_backend(config), HttpBackend)
        self.assertIsInstance(get_backend(GameConfig.from_settings()), DatabaseBackend)


class PushRemoteSaveTaskTests(TestCase):
    def test_stores_snapshot(self):
        self.assertTrue(push_remote_save('6', {'user_id': '6'}))
        self.assertTrue(GameSave.objects.filter(user_id='6').exists())

    def test_failure_is_logged_not_raised(self):
        with patch('game.services.backends.DatabaseBackend.save', side_effect=BackendError('save_failed', 'x')):
            with self.assertLogs('game.tasks', level='ERROR'):
                self.assertFalse(push_remote_save('6', {}))
