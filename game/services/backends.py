"""
Remote stores for GameState snapshots and the gold-spend ledger.

DatabaseBackend talks to the ORM directly; HttpBackend talks to the JSON API
of another deployment. Both raise BackendError on failure.
"""
from typing import Optional
import logging

import requests
from django.db import DatabaseError
from django.utils import timezone
from django.utils.module_loading import import_string

from ..models import GameSave, GlobalEconomy

logger = logging.getLogger(__name__)


class BackendError(Exception):
    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code


class RemoteBackend:
    def __init__(self, config):
        self.config = config

    def save(self, user_id: str, state: dict) -> None:
        raise NotImplementedError

    def load(self, user_id: str) -> Optional[dict]:
        raise NotImplementedError

    def delete(self, user_id: str) -> bool:
        raise NotImplementedError

    def record_spend(self, amount: int) -> dict:
        raise NotImplementedError

    def owner_bank(self, admin_user_id: str) -> dict:
        raise NotImplementedError


class DatabaseBackend(RemoteBackend):
    def save(self, user_id, state):
        try:
            GameSave.objects.update_or_create(
                user_id=str(user_id),
                defaults={'data': state, 'last_saved': timezone.now()},
            )
        except DatabaseError as e:
            raise BackendError('save_failed', f"Could not store save for {user_id}: {e}")
        logger.debug(f"Stored remote save for {user_id}")

    def load(self, user_id):
        try:
            row = GameSave.objects.filter(user_id=str(user_id)).first()
        except DatabaseError as e:
            raise BackendError('load_failed', f"Could not read save for {user_id}: {e}")
        return row.data if row else None

    def delete(self, user_id):
        deleted, _ = GameSave.objects.filter(user_id=str(user_id)).delete()
        return deleted > 0

    def record_spend(self, amount):
        amount = int(amount)
        if amount <= 0:
            raise BackendError('invalid_amount', 'Invalid amount')
        try:
            total = GlobalEconomy.record_spend(amount)
        except DatabaseError as e:
            raise BackendError('spend_failed', f"Could not record spend: {e}")
        return {'success': True, 'owner_bank_gold': total}

    def owner_bank(self, admin_user_id):
        return {'success': True, 'owner_bank_gold': GlobalEconomy.current().owner_bank_gold}


class HttpBackend(RemoteBackend):
    def __init__(self, config, session: Optional[requests.Session] = None):
        super().__init__(config)
        self.base = config.remote_api_base.rstrip('/')
        self.timeout = config.remote_timeout_s
        self.session = session or requests.Session()

    def _request(self, method: str, path: str, allow_404: bool = False, **kwargs):
        url = f"{self.base}/{path.lstrip('/')}"
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
            if allow_404 and response.status_code == 404:
                return None
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as e:
            raise BackendError('http_error', f"{method} {url} failed: {e}")
        except ValueError as e:
            raise BackendError('bad_response', f"{method} {url} returned invalid JSON: {e}")
        if not isinstance(data, dict):
            raise BackendError('bad_response', f"{method} {url} returned {type(data).__name__}, not an object")
        return data

    def save(self, user_id, state):
        body = dict(state)
        body['user_id'] = str(user_id)
        data = self._request('POST', 'game/save/', json=body)
        if not data.get('success'):
            raise BackendError('save_failed', data.get('message', 'Failed to save game'))

    def load(self, user_id):
        return self._request('GET', f"game/load/{user_id}/", allow_404=True)

    def delete(self, user_id):
        data = self._request('DELETE', f"game/delete/{user_id}/", allow_404=True)
        return bool(data and data.get('success'))

    def record_spend(self, amount):
        return self._request('POST', 'economy/spend/', json={'amount': int(amount)})

    def owner_bank(self, admin_user_id):
        return self._request('GET', 'economy/bank/', headers={'X-Admin-User-Id': str(admin_user_id)})


def get_backend(config) -> RemoteBackend:
    """Instantiate the backend named by GAME_SETTINGS['REMOTE_BACKEND']"""
    cls = import_string(config.remote_backend)
    return cls(config)
