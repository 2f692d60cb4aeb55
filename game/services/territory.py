"""
Territory rules for circle-based claims: first flag, edge expansion, build
and movement legality, flag removal and full reset.
"""
from __future__ import annotations
from typing import List, Optional
import logging

from django.utils import timezone

from ..state import Building, City, Coordinate, Resource, Territory, new_id
from ..utils.geo import EPS, haversine_m

logger = logging.getLogger(__name__)

STARTING_CITY_LEDGER = (
    ('wood', 200, 1000),
    ('stone', 150, 1000),
    ('iron', 50, 500),
    ('food', 300, 1000),
    ('gold', 500, 5000),
)
STARTING_PRODUCTION = {'food': 5, 'wood': 3, 'stone': 2, 'iron': 1, 'gold': 2}


def _dist_to(t: Territory, lat: float, lon: float) -> float:
    return haversine_m(lat, lon, t.position.x, t.position.y)


def owned_territories(engine) -> List[Territory]:
    pid = engine.player.id
    return [t for t in engine.state.territories if t.owner_id == pid]


def is_location_claimed(engine, lat: float, lon: float) -> bool:
    """Any flag, whoever owns it, closer than the occupied radius."""
    r = engine.config.claim_occupied_radius_m
    return any(_dist_to(t, lat, lon) <= r + EPS for t in engine.state.territories)


def is_in_own_territory(engine, lat: float, lon: float) -> bool:
    r = engine.config.territory_radius_m
    return any(_dist_to(t, lat, lon) <= r + EPS for t in owned_territories(engine))


def black_flag_territory_at(engine, lat: float, lon: float, foreign_only: bool = False) -> Optional[Territory]:
    r = engine.config.territory_radius_m
    pid = engine.player.id
    for t in engine.state.territories:
        if t.is_active:
            continue
        if foreign_only and t.owner_id == pid:
            continue
        if _dist_to(t, lat, lon) <= r + EPS:
            return t
    return None


def is_in_black_flag_territory(engine, lat: float, lon: float) -> bool:
    return black_flag_territory_at(engine, lat, lon) is not None


def can_move_to_location(engine, lat: float, lon: float) -> bool:
    return is_in_own_territory(engine, lat, lon) or is_in_black_flag_territory(engine, lat, lon)


def claim_territory(engine, lat: float, lon: float) -> Optional[Territory]:
    """Create a territory for the player unless one of theirs is already within the duplicate radius."""
    player = engine.player
    dup = engine.config.duplicate_claim_radius_m
    for t in owned_territories(engine):
        if _dist_to(t, lat, lon) <= dup + EPS:
            return None
    territory = Territory(
        id=new_id('territory'),
        position=Coordinate(lat, lon),
        owner_id=player.id,
        owner_name=player.name,
        claimed_at=timezone.now(),
        is_active=True,
        color=engine.config.territory_color,
    )
    engine.state.territories.append(territory)
    player.territory.append(territory.id)
    engine.emit('territory_claimed', territory=territory.to_dict())
    return territory


def new_starting_city(lat: float, lon: float) -> City:
    return City(
        id='city-1',
        name='Haven',
        position=Coordinate(lat, lon),
        level=1,
        population=10,
        max_population=50,
        resources=[Resource(rtype, amount, cap) for rtype, amount, cap in STARTING_CITY_LEDGER],
        production_rates=dict(STARTING_PRODUCTION),
    )


def place_first_flag(engine, lat: float, lon: float) -> bool:
    state = engine.state
    if state.has_placed_first_flag:
        return False
    if is_location_claimed(engine, lat, lon):
        return False

    player = engine.player
    player.cities = [new_starting_city(lat, lon)]
    claim_territory(engine, lat, lon)

    house = Building(
        id=new_id('building'),
        type='house',
        position=Coordinate(lat, lon),
        owner=player.id,
        is_under_construction=False,
        construction_time=0,
    )
    state.buildings = [house]
    state.has_placed_first_flag = True
    logger.info(f"First flag placed by {player.name} at {lat:.6f},{lon:.6f}")

    # Spawn around the flag even when the player already stands in this chunk
    engine.world.last_chunk_key = None
    engine.world.ensure_near(lat, lon)
    return True


def place_additional_flag(engine, lat: float, lon: float) -> bool:
    """Expand along the edge band of an owned territory.

    The target must be unclaimed, must not sit deeper than (radius - buffer)
    inside any owned territory, and must fall within (radius +/- buffer) of at
    least one of them.
    """
    if not engine.state.has_placed_first_flag:
        return False
    if is_location_claimed(engine, lat, lon):
        return False

    radius = engine.config.territory_radius_m
    buffer = engine.config.territory_edge_buffer_m
    inner, outer = radius - buffer, radius + buffer
    distances = [_dist_to(t, lat, lon) for t in owned_territories(engine)]
    if any(d < inner - EPS for d in distances):
        return False
    if not any(inner - EPS <= d <= outer + EPS for d in distances):
        return False

    territory = claim_territory(engine, lat, lon)
    if territory:
        logger.info(f"Territory expanded to {lat:.6f},{lon:.6f} ({territory.id})")
    return territory is not None


def can_build_at(engine, lat: float, lon: float) -> bool:
    if not engine.state.has_placed_first_flag:
        return False
    reach = engine.config.territory_radius_m + engine.config.territory_edge_buffer_m
    if not any(_dist_to(t, lat, lon) <= reach + EPS for t in owned_territories(engine)):
        return False
    spacing = engine.config.placement_min_distance_m
    for b in engine.state.buildings:
        if haversine_m(lat, lon, b.position.x, b.position.y) < spacing:
            return False
    for m in engine.state.monsters:
        if m.is_alive and haversine_m(lat, lon, m.position.x, m.position.y) < spacing:
            return False
    return True


def remove_last_flag(engine) -> bool:
    """Drop the most recently claimed own territory; the last one is never removed."""
    owned = owned_territories(engine)
    if len(owned) <= 1:
        return False
    last = max(owned, key=lambda t: t.claimed_at)
    engine.state.territories = [t for t in engine.state.territories if t.id != last.id]
    engine.player.territory = [tid for tid in engine.player.territory if tid != last.id]
    logger.info(f"Removed flag {last.id}")
    return True


def set_territory_active(engine, territory_id: str, active: bool) -> bool:
    for t in owned_territories(engine):
        if t.id == territory_id:
            t.is_active = bool(active)
            return True
    return False


def clear_first_flag(engine) -> None:
    state = engine.state
    state.has_placed_first_flag = False
    state.territories = []
    state.buildings = []
    state.monsters = []
    state.resource_nodes = []
    engine.player.cities = []
    engine.player.territory = []
    engine.combat.clear()
    engine.world.last_chunk_key = None
    logger.info("All territories cleared")
