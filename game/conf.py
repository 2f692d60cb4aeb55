"""
Game rule configuration read from settings.GAME_SETTINGS
"""
from dataclasses import dataclass, fields, replace
from django.conf import settings


@dataclass(frozen=True)
class GameConfig:
    territory_radius_m: float = 200
    territory_edge_buffer_m: float = 20
    placement_min_distance_m: float = 10
    claim_occupied_radius_m: float = 25
    duplicate_claim_radius_m: float = 5
    territory_color: str = '#4169e1'

    world_chunk_size_km: float = 2
    world_chunks_radius: int = 0
    monsters_per_chunk: int = 3
    resources_per_chunk: int = 3
    spawn_safe_radius_m: float = 50

    encounter_radius_m: float = 25
    harvest_radius_m: float = 25
    harvest_amount: int = 20
    resource_regen_delay_s: float = 5
    loot_pickup_radius_m: float = 20
    companion_track_range_m: float = 1000

    counter_attack_delay_s: float = 0.5
    meters_per_energy: float = 100
    black_flag_energy_multiplier: int = 2

    autosave_interval_s: float = 30
    save_key: str = 'parallel-realms-game-save'
    save_cache_alias: str = 'saves'
    remote_backend: str = 'game.services.backends.DatabaseBackend'
    remote_api_base: str = 'http://localhost:8000/api'
    remote_timeout_s: float = 10
    bank_owner_username: str = ''

    @classmethod
    def from_settings(cls, **overrides) -> 'GameConfig':
        """Map GAME_SETTINGS keys (upper case) onto config fields; unknown keys are ignored."""
        gs = getattr(settings, 'GAME_SETTINGS', {}) or {}
        values = {}
        for f in fields(cls):
            key = f.name.upper()
            if key in gs:
                values[f.name] = gs[key]
        values.update(overrides)
        return cls(**values)

    def with_overrides(self, **changes) -> 'GameConfig':
        return replace(self, **changes)
