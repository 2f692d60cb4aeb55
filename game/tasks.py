from celery import shared_task
import logging

from .conf import GameConfig
from .services.backends import BackendError, get_backend

logger = logging.getLogger(__name__)


@shared_task(ignore_result=True)
def push_remote_save(user_id: str, state: dict, backend_path: str = None):
    """Write a GameState snapshot to the remote store.
    Failures are logged only; the local cache already holds the save.
    """
    config = GameConfig.from_settings()
    if backend_path:
        config = config.with_overrides(remote_backend=backend_path)
    try:
        get_backend(config).save(user_id, state)
    except BackendError as e:
        logger.error(f"Remote save for {user_id} failed [{e.code}]: {e}")
        return False
    logger.debug(f"Remote save for {user_id} stored")
    return True
