"""
Parallel Realms URL Configuration
"""
from django.urls import path, include, re_path
from django.http import JsonResponse


# Simple healthcheck for load balancers
def health(request):
    return JsonResponse({"status": "ok"}, status=200)


urlpatterns = [
    path('health/', health, name='health'),
    re_path(r'^(?:health|healthz|livez|readyz)/?$', health),

    # Save/load and economy API
    path('api/', include('game.urls')),
]
