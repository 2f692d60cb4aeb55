"""
Resource-gated creation: anvil crafting, city buildings, monster loot.
"""
from __future__ import annotations
from typing import Dict, List, Optional
import logging

from ..results import Outcome
from ..state import Building, City, Coordinate, InventoryItem, ItemStats, new_id
from ..utils.numbers import round_half_up, scale_stat
from . import persistence
from .territory import can_build_at, claim_territory

logger = logging.getLogger(__name__)

CITY_COLLECT_MULTIPLIER = 10
DEFAULT_RESOURCE_CAP = 1000


# --- City ledger -----------------------------------------------------------

def first_unaffordable(city: City, costs: Dict[str, int]) -> Optional[str]:
    """Name of the first cost the ledger cannot cover, or None."""
    for rtype, amount in costs.items():
        res = city.resource(rtype)
        if res is None or res.amount < amount:
            return rtype
    return None


def pay_costs(city: City, costs: Dict[str, int]) -> int:
    """Deduct costs (already checked) and return the gold part."""
    gold = 0
    for rtype, amount in costs.items():
        city.resource(rtype).amount -= amount
        if rtype == 'gold':
            gold += amount
    return gold


def add_to_ledger(city: City, rtype: str, amount: int) -> int:
    """Credit a ledger entry up to its cap; returns the amount actually stored."""
    res = city.resource(rtype)
    if res is None:
        return 0
    cap = res.max_amount if res.max_amount is not None else DEFAULT_RESOURCE_CAP
    before = res.amount
    res.amount = min(cap, res.amount + amount)
    return res.amount - before


def collect_city_resources(engine, city_id: str) -> bool:
    city = next((c for c in engine.player.cities if c.id == city_id), None)
    if city is None:
        return False
    for res in city.resources:
        rate = city.production_rates.get(res.type, 0)
        add_to_ledger(city, res.type, rate * CITY_COLLECT_MULTIPLIER)
    return True


# --- Anvil -----------------------------------------------------------------

def craft_at_anvil(engine, recipe_id: str) -> Outcome:
    recipe = engine.catalogs.recipes.get(recipe_id)
    if recipe is None:
        return Outcome.fail('Recipe not found.')
    city = engine.player.first_city
    if city is None:
        return Outcome.fail('You need a city to craft items.')
    missing = first_unaffordable(city, recipe['costs'])
    if missing:
        return Outcome.fail(f"Not enough {missing}.")

    gold_spent = pay_costs(city, recipe['costs'])
    socketable = recipe['type'] in ('weapon', 'armor')
    item = InventoryItem(
        id=new_id(f"crafted-{recipe_id}"),
        name=recipe['name'],
        type=recipe['type'],
        rarity=recipe.get('rarity', 'common'),
        quantity=1,
        stats=ItemStats.from_dict(recipe.get('stats') or {}),
        icon=recipe.get('icon', ''),
        max_sockets=engine.catalogs.sockets_for(recipe.get('rarity', 'common')) if socketable else None,
        socketed_gems=[] if socketable else None,
        gem_element=recipe.get('gem_element'),
        ability_name=recipe.get('ability_name'),
        ability_description=recipe.get('ability_description'),
        slot=recipe.get('slot'),
    )
    engine.player.inventory.append(item)
    if gold_spent:
        persistence.record_gold_spend(engine, gold_spent)
    logger.info(f"Crafted {item.name} ({recipe_id})")
    return Outcome.ok(f"Forged {item.name}!", item_name=item.name, item_id=item.id)


# --- Buildings -------------------------------------------------------------

def build_structure(engine, building_type: str, lat: float, lon: float) -> Outcome:
    if not can_build_at(engine, lat, lon):
        return Outcome.fail("You can't build here.")
    info = engine.catalogs.buildings.get(building_type)
    if info is None:
        return Outcome.fail('Unknown building type.')
    city = engine.player.first_city
    if city is None:
        return Outcome.fail('You need a city to build.')
    required = info.get('city_level', 1)
    if city.level < required:
        return Outcome.fail(f"Requires city level {required}.")
    missing = first_unaffordable(city, info['costs'])
    if missing:
        return Outcome.fail(f"Not enough {missing}.")

    gold_spent = pay_costs(city, info['costs'])
    if gold_spent:
        persistence.record_gold_spend(engine, gold_spent)

    building = Building(
        id=new_id('building'),
        type=building_type,
        position=Coordinate(lat, lon),
        owner=engine.player.id,
        is_under_construction=True,
        construction_time=info['build_time'],
    )
    engine.state.buildings.append(building)
    engine.scheduler.schedule(
        info['build_time'],
        lambda: complete_building(engine, building.id),
        label=f"construction:{building.id}",
    )
    claim_territory(engine, lat, lon)
    logger.info(f"Construction of {building_type} started at {lat:.6f},{lon:.6f}")
    return Outcome.ok(f"Started building {info.get('name', building_type)}.", building_id=building.id)


def complete_building(engine, building_id: str) -> bool:
    for b in engine.state.buildings:
        if b.id == building_id:
            b.is_under_construction = False
            b.construction_time = 0
            engine.emit('building_completed', building=b.to_dict())
            return True
    return False


# --- Loot ------------------------------------------------------------------

def _weapon_loot(entry, rarity, level, scale, sockets) -> InventoryItem:
    return InventoryItem(
        id=new_id('weapon'), name=entry['name'], type='weapon', rarity=rarity,
        stats=ItemStats(attack=max(1, round_half_up((entry['attack'] + level / 2) * scale))),
        icon=entry.get('icon', ''), max_sockets=sockets, socketed_gems=[],
    )


def _armor_loot(entry, rarity, level, scale, sockets) -> InventoryItem:
    return InventoryItem(
        id=new_id('armor'), name=entry['name'], type='armor', rarity=rarity,
        stats=ItemStats(defense=max(1, round_half_up((entry['defense'] + level / 3) * scale))),
        icon=entry.get('icon', ''), max_sockets=sockets, socketed_gems=[],
    )


def _accessory_loot(entry, rarity, scale) -> InventoryItem:
    return InventoryItem(
        id=new_id('accessory'), name=entry['name'], type='accessory', rarity=rarity,
        stats=ItemStats(
            attack=scale_stat(entry.get('attack'), scale),
            defense=scale_stat(entry.get('defense'), scale),
        ),
        icon=entry.get('icon', ''),
    )


def _gem_loot(entry, scale) -> InventoryItem:
    stats = entry.get('stats') or {}
    return InventoryItem(
        id=new_id('gem'), name=entry['name'], type='gem', rarity='epic',
        stats=ItemStats(
            attack=scale_stat(stats.get('attack'), scale),
            defense=scale_stat(stats.get('defense'), scale),
            health_boost=scale_stat(stats.get('health_boost'), scale),
            energy_boost=scale_stat(stats.get('energy_boost'), scale),
        ),
        icon=entry.get('icon', ''),
        gem_element=entry.get('element'),
        ability_name=entry.get('ability_name'),
        ability_description=entry.get('ability_description'),
    )


def generate_loot(engine, level: int) -> List[InventoryItem]:
    """Roll a monster's drop table.

    One rarity roll applies to the whole drop. Gold coins (75%), then exactly
    one of weapon / armor / accessory (45/35/20), then an extra epic gem (2%)
    and an extra resource bundle (60%).
    """
    rng = engine.rng
    cats = engine.catalogs
    rarity = cats.rarity_for_roll(rng.random())
    scale = cats.rarity_scale.get(rarity, 1)
    sockets = cats.sockets_for(rarity)
    loot: List[InventoryItem] = []

    if rng.random() > 0.25:
        loot.append(InventoryItem(
            id=new_id('gold'), name='Gold Coins', type='resource', rarity='common',
            quantity=max(5, level * 10), icon='💰',
        ))

    drop_roll = rng.random()
    if drop_roll < 0.45:
        loot.append(_weapon_loot(rng.choice(cats.loot_weapons), rarity, level, scale, sockets))
    elif drop_roll < 0.8:
        loot.append(_armor_loot(rng.choice(cats.loot_armor), rarity, level, scale, sockets))
    else:
        loot.append(_accessory_loot(rng.choice(cats.loot_accessories), rarity, scale))

    if rng.random() < 0.02:
        loot.append(_gem_loot(rng.choice(cats.loot_gems), cats.rarity_scale.get('epic', 1)))

    if rng.random() < 0.6:
        res = rng.choice(cats.loot_resources)
        base = max(5, round_half_up(level * 8))
        loot.append(InventoryItem(
            id=new_id(f"resource-{res['type']}"), name=res['name'], type='resource', rarity=rarity,
            quantity=max(1, round_half_up(base * scale)), icon=res.get('icon', ''),
        ))
    return loot
