"""
JSON API for the remote save store and the shared gold economy.
HttpBackend is the client of these endpoints.
"""
import json
import logging

from django.conf import settings
from django.contrib.auth import get_user_model
from django.http import JsonResponse
from django.utils import timezone
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from .models import GameSave, GlobalEconomy
from .state import GameState, SnapshotError

logger = logging.getLogger(__name__)


def _json_body(request):
    try:
        return json.loads(request.body or b'{}')
    except (ValueError, UnicodeDecodeError):
        return None


@csrf_exempt
@require_http_methods(["POST"])
def save_game(request):
    data = _json_body(request)
    if not isinstance(data, dict):
        return JsonResponse({'success': False, 'message': 'Invalid JSON'}, status=400)
    user_id = data.get('user_id')
    if not user_id:
        return JsonResponse({'success': False, 'message': 'User ID required'}, status=400)
    try:
        state = GameState.from_dict(data)
    except SnapshotError as e:
        return JsonResponse({'success': False, 'message': str(e), 'code': e.code}, status=400)

    GameSave.objects.update_or_create(
        user_id=str(user_id),
        defaults={'data': state.to_dict(), 'last_saved': timezone.now()},
    )
    logger.info(f"Stored game save for {user_id}")
    return JsonResponse({'success': True, 'message': 'Game saved successfully'})


@require_http_methods(["GET"])
def load_game(request, user_id):
    row = GameSave.objects.filter(user_id=user_id).first()
    if row is None:
        return JsonResponse({'success': False, 'message': 'No saved game found'}, status=404)
    return JsonResponse(row.data)


@csrf_exempt
@require_http_methods(["DELETE"])
def delete_game(request, user_id):
    deleted, _ = GameSave.objects.filter(user_id=user_id).delete()
    if not deleted:
        return JsonResponse({'success': False, 'message': 'Game not found'}, status=404)
    logger.info(f"Deleted game save for {user_id}")
    return JsonResponse({'success': True, 'message': 'Game deleted successfully'})


@require_http_methods(["GET"])
def list_games(request, user_id):
    row = GameSave.objects.filter(user_id=user_id).first()
    return JsonResponse({
        'user_id': user_id,
        'game_exists': row is not None,
        'last_saved': row.last_saved.isoformat() if row else None,
    })


@csrf_exempt
@require_http_methods(["POST"])
def economy_spend(request):
    data = _json_body(request) or {}
    try:
        amount = int(data.get('amount', 0))
    except (TypeError, ValueError):
        amount = 0
    if amount <= 0:
        return JsonResponse({'success': False, 'message': 'Invalid amount'}, status=400)

    total = GlobalEconomy.record_spend(amount)
    return JsonResponse({'success': True, 'owner_bank_gold': total})


def _bank_admin(request):
    """Resolve the admin behind a session or an X-Admin-User-Id header."""
    user = getattr(request, 'user', None)
    if user is not None and user.is_authenticated:
        return user
    admin_id = request.headers.get('X-Admin-User-Id')
    if not admin_id:
        return None
    try:
        return get_user_model().objects.filter(pk=admin_id).first()
    except (TypeError, ValueError):
        return None


@require_http_methods(["GET"])
def economy_bank(request):
    admin = _bank_admin(request)
    if admin is None:
        return JsonResponse({'success': False, 'message': 'Admin authentication required'}, status=401)
    if not admin.is_staff:
        return JsonResponse({'success': False, 'message': 'Admin access denied'}, status=403)
    owner = getattr(settings, 'GAME_SETTINGS', {}).get('BANK_OWNER_USERNAME') or ''
    if owner and admin.get_username().lower() != owner.lower():
        return JsonResponse({'success': False, 'message': 'Owner access denied'}, status=403)
    return JsonResponse({'success': True, 'owner_bank_gold': GlobalEconomy.current().owner_bank_gold})
