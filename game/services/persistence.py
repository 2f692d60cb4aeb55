"""
Save/load coordination: local cache first, remote store as fallback and
out-of-band mirror, plus the gold-spend side channel.
"""
from __future__ import annotations
from typing import Optional
import copy
import json
import logging

from django.core.cache import caches
from django.utils import timezone

from ..results import Outcome
from ..state import GameState, SnapshotError
from ..tasks import push_remote_save
from .backends import BackendError, get_backend

logger = logging.getLogger(__name__)


def save_key(engine) -> str:
    return f"{engine.config.save_key}:{engine.auth.user_id or 'anonymous'}"


def _cache(engine):
    return caches[engine.config.save_cache_alias]


def _parse(raw) -> GameState:
    data = json.loads(raw) if isinstance(raw, (str, bytes)) else raw
    return GameState.from_dict(data)


def save_game_local(engine) -> GameState:
    """Write a snapshot to the local cache; mirror it remotely when signed in.

    Neither a cache nor a dispatch failure propagates; the returned snapshot is
    the state that was attempted.
    """
    engine.state.user_id = engine.auth.user_id or 'anonymous'
    engine.state.last_saved = timezone.now()
    snapshot = copy.deepcopy(engine.state)
    payload = snapshot.to_dict()

    try:
        _cache(engine).set(save_key(engine), json.dumps(payload), timeout=None)
    except Exception as e:
        logger.error(f"Local save failed for {save_key(engine)}: {e}")

    if engine.auth.authenticated:
        _dispatch_remote_save(engine, payload)

    engine.last_save_time = engine.clock()
    logger.info(f"Game saved for {snapshot.user_id} at {snapshot.last_saved:%H:%M:%S}")
    return snapshot


def _dispatch_remote_save(engine, payload: dict) -> None:
    try:
        push_remote_save.delay(str(engine.auth.user_id), payload, engine.config.remote_backend)
    except Exception as e:
        logger.warning(f"Could not queue remote save for {engine.auth.user_id}: {e}")


def load_game_local(engine) -> bool:
    try:
        raw = _cache(engine).get(save_key(engine))
    except Exception as e:
        logger.error(f"Local cache unavailable: {e}")
        return False
    if not raw:
        return False

    try:
        state = _parse(raw)
    except (ValueError, SnapshotError) as e:
        logger.error(f"Discarding unreadable local save {save_key(engine)}: {e}")
        return False

    if engine.auth.authenticated and state.user_id != str(engine.auth.user_id):
        logger.warning(f"Local save belongs to {state.user_id}, not {engine.auth.user_id}")
        return False

    engine.restore(state)
    logger.info(f"Game loaded from local save ({state.last_saved})")
    return True


def load_game_remote(engine) -> bool:
    if not engine.auth.authenticated:
        return False
    try:
        data = get_backend(engine.config).load(str(engine.auth.user_id))
    except BackendError as e:
        logger.error(f"Remote load failed [{e.code}]: {e}")
        return False
    if not data:
        return False

    try:
        state = _parse(data)
    except (ValueError, SnapshotError) as e:
        logger.error(f"Discarding unreadable remote save for {engine.auth.user_id}: {e}")
        return False

    engine.restore(state)
    try:
        _cache(engine).set(save_key(engine), json.dumps(state.to_dict()), timeout=None)
    except Exception as e:
        logger.error(f"Could not refresh local cache: {e}")
    logger.info(f"Game loaded from server for {engine.auth.user_id}")
    return True


def load_game(engine) -> Optional[str]:
    """Local first, remote only when nothing usable is cached. Returns the source used."""
    if load_game_local(engine):
        return 'local'
    if load_game_remote(engine):
        return 'remote'
    return None


def manual_save_game(engine) -> Outcome:
    save_game_local(engine)
    return Outcome.ok('Game saved successfully!')


def delete_save_game(engine) -> bool:
    try:
        _cache(engine).delete(save_key(engine))
    except Exception as e:
        logger.error(f"Could not delete local save: {e}")
        return False
    logger.info(f"Game save deleted ({save_key(engine)})")
    return True


def _bank_total(engine, response, what: str) -> Optional[int]:
    if not isinstance(response, dict):
        logger.warning(f"{what}: unexpected reply {response!r}")
        return None
    bank = response.get('owner_bank_gold') if response.get('success') else None
    if isinstance(bank, int) and not isinstance(bank, bool):
        engine.owner_bank_gold = bank
        return bank
    return None


def record_gold_spend(engine, amount: int) -> Optional[int]:
    if amount <= 0:
        return None
    try:
        response = get_backend(engine.config).record_spend(amount)
    except BackendError as e:
        logger.warning(f"Gold spend of {amount} not recorded [{e.code}]: {e}")
        return None
    return _bank_total(engine, response, f"Gold spend of {amount}")


def refresh_owner_bank_gold(engine) -> Optional[int]:
    """Bank total for the owning admin only."""
    auth = engine.auth
    if not auth.is_admin:
        return None
    owner = engine.config.bank_owner_username
    if owner and (auth.username or '').lower() != owner.lower():
        return None
    try:
        response = get_backend(engine.config).owner_bank(str(auth.user_id))
    except BackendError as e:
        logger.warning(f"Owner bank refresh failed [{e.code}]: {e}")
        return None
    return _bank_total(engine, response, 'Owner bank refresh')


def start_autosave(engine) -> None:
    if engine.config.autosave_interval_s <= 0:
        return

    def _autosave():
        save_game_local(engine)
        engine.scheduler.schedule(engine.config.autosave_interval_s, _autosave, label='autosave')

    engine.scheduler.schedule(engine.config.autosave_interval_s, _autosave, label='autosave')
