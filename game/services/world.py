"""
Chunked procedural world: monsters and resource nodes are spawned once per
chunk the first time the player's position enters it.
"""
from __future__ import annotations
from typing import List, Optional, Set
import logging
import math

from ..state import Coordinate, Monster, ResourceNode, new_id
from ..utils.geo import EPS, chunk_bounds, chunk_for, chunk_key, chunks_within_radius, haversine_m
from ..utils.numbers import round_half_up
from .crafting import generate_loot

logger = logging.getLogger(__name__)


def monster_tier(player_level: int) -> int:
    return math.floor((player_level - 1) / 10)


def spawn_pool(catalog: List[dict], player_level: int) -> List[dict]:
    tier = monster_tier(player_level)
    eligible = [m for m in catalog if m.get('min_tier', 0) <= tier]
    return eligible or [m for m in catalog if m.get('min_tier', 0) == 0]


def monster_max_health(player_max_health: int, monster_level: int, player_level: int) -> int:
    return max(30, round_half_up(player_max_health * 0.8 + (monster_level - player_level) * 5))


class WorldGenerator:
    def __init__(self, engine):
        self.engine = engine
        self.generated_chunks: Set[str] = set()
        self.last_chunk_key: Optional[str] = None

    def reset(self):
        self.generated_chunks.clear()
        self.last_chunk_key = None

    def ensure_near(self, lat: float, lon: float) -> int:
        """Generate every unseen chunk around (lat, lon). Returns how many chunks were filled."""
        cfg = self.engine.config
        cx, cy, key = chunk_for(lat, lon, cfg.world_chunk_size_km)
        if key == self.last_chunk_key:
            return 0
        self.last_chunk_key = key
        filled = 0
        for x, y in chunks_within_radius(cx, cy, cfg.world_chunks_radius):
            if self.generate_chunk(x, y, lat, lon):
                filled += 1
        return filled

    def generate_chunk(self, cx: int, cy: int, anchor_lat: float, anchor_lon: float) -> bool:
        key = chunk_key(cx, cy)
        if key in self.generated_chunks:
            return False
        self.generated_chunks.add(key)

        cfg = self.engine.config
        bounds = chunk_bounds(cx, cy, cfg.world_chunk_size_km)
        monsters = self.spawn_monsters(bounds, anchor_lat, anchor_lon, cfg.monsters_per_chunk)
        nodes = self.spawn_resources(bounds, cfg.resources_per_chunk)
        self.engine.state.monsters.extend(monsters)
        self.engine.state.resource_nodes.extend(nodes)
        logger.debug(f"Chunk {key}: {len(monsters)} monsters, {len(nodes)} resource nodes")
        return True

    def _random_point(self, bounds):
        rng = self.engine.rng
        min_lat, max_lat, min_lon, max_lon = bounds
        lat = min_lat + rng.random() * (max_lat - min_lat)
        lon = min_lon + rng.random() * (max_lon - min_lon)
        return lat, lon

    def spawn_monsters(self, bounds, anchor_lat: float, anchor_lon: float, count: int) -> List[Monster]:
        engine = self.engine
        player = engine.player
        pool = spawn_pool(engine.catalogs.monsters, player.level)
        safe = engine.config.spawn_safe_radius_m
        out = []
        for _ in range(count):
            kind = engine.rng.choice(pool)
            lat, lon = self._random_point(bounds)
            # Attempts on top of the player are dropped, not retried
            if haversine_m(anchor_lat, anchor_lon, lat, lon) <= safe + EPS:
                continue
            hp = monster_max_health(player.max_health, kind['level'], player.level)
            out.append(Monster(
                id=new_id('monster'),
                name=kind['name'],
                level=kind['level'],
                icon=kind.get('icon', ''),
                health=hp,
                max_health=hp,
                attack=kind['attack'],
                defense=kind['defense'],
                position=Coordinate(lat, lon),
                loot=generate_loot(engine, kind['level']),
            ))
        return out

    def spawn_resources(self, bounds, count: int) -> List[ResourceNode]:
        engine = self.engine
        out = []
        for _ in range(count):
            kind = engine.rng.choice(engine.catalogs.resource_nodes)
            lat, lon = self._random_point(bounds)
            out.append(ResourceNode(
                id=new_id('resource'),
                type=kind['type'],
                position=Coordinate(lat, lon),
                amount=kind['max'],
                max_amount=kind['max'],
                regeneration_rate=kind['regen'],
                icon=kind.get('icon', ''),
            ))
        return out


def ensure_world_entities_near(engine, lat: float, lon: float) -> int:
    return engine.world.ensure_near(lat, lon)
