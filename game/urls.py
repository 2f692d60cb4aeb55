"""
Save store and economy API (mounted under /api/)
"""
from django.urls import path
from . import views

urlpatterns = [
    path('game/save/', views.save_game, name='game_save'),
    path('game/load/<str:user_id>/', views.load_game, name='game_load'),
    path('game/delete/<str:user_id>/', views.delete_game, name='game_delete'),
    path('game/list/<str:user_id>/', views.list_games, name='game_list'),
    path('economy/spend/', views.economy_spend, name='economy_spend'),
    path('economy/bank/', views.economy_bank, name='economy_bank'),
]
