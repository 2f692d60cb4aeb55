"""
Inventory, equipment, gem sockets, consumables and map loot.
"""
from __future__ import annotations
from typing import List, Optional
import logging

from django.utils import timezone

from ..results import Outcome
from ..state import (
    EQUIPMENT_SLOTS, Companion, Coordinate, InventoryItem, ItemStats, LootItem, Player, new_id,
)
from ..utils.geo import EPS, haversine_m
from ..utils.numbers import round_half_up

logger = logging.getLogger(__name__)

DOG_WHISTLE_ID = 'dog-whistle'


def add_to_inventory(player: Player, item: InventoryItem) -> InventoryItem:
    """Append an item; an item whose id is already held only raises the stack size."""
    existing = player.find_item(item.id)
    if existing is not None:
        existing.quantity += item.quantity
        return existing
    player.inventory.append(item)
    return item


def consume(player: Player, item: InventoryItem, amount: int = 1) -> None:
    item.quantity = max(0, item.quantity - amount)
    if item.quantity == 0:
        player.inventory = [i for i in player.inventory if i is not item]


# --- Equipment -------------------------------------------------------------

def slot_for(engine, item: InventoryItem) -> Optional[str]:
    if item.slot in EQUIPMENT_SLOTS:
        return item.slot
    name = item.name.lower()
    if item.type == 'weapon':
        return 'weapon'
    if item.type == 'armor':
        for keywords, slot in engine.catalogs.armor_slot_keywords:
            if any(k in name for k in keywords):
                return slot
        return 'chest'
    if item.type == 'accessory':
        return 'amulet' if 'amulet' in name else 'ring'
    return None


def equip_item(engine, item_id: str) -> Outcome:
    player = engine.player
    item = player.find_item(item_id)
    if item is None:
        return Outcome.fail('Item not found.')
    slot = slot_for(engine, item)
    if slot is None:
        return Outcome.fail(f"{item.name} can't be equipped.")
    player.equipment[slot] = item
    return Outcome.ok(f"Equipped {item.name}.", slot=slot)


def unequip_item(engine, slot: str) -> bool:
    return engine.player.equipment.pop(slot, None) is not None


def equipment_bonus(engine) -> dict:
    bonus = {'attack': 0, 'defense': 0}
    for item in engine.player.equipment.values():
        if item and item.stats:
            bonus['attack'] += item.stats.attack or 0
            bonus['defense'] += item.stats.defense or 0
    return bonus


# --- Sockets ---------------------------------------------------------------

def socket_gem(engine, target_item_id: str, gem_id: str) -> Outcome:
    player = engine.player
    gem = next((i for i in player.inventory if i.id == gem_id and i.type == 'gem'), None)
    if gem is None:
        return Outcome.fail('Gem not found.')

    equipped = [i for i in player.equipment.values() if i is not None]
    target = next((i for i in equipped if i.id == target_item_id), None) or player.find_item(target_item_id)
    if target is None or not target.is_socketable:
        return Outcome.fail('Target item is not socketable.')

    max_sockets = target.max_sockets if target.max_sockets is not None else engine.catalogs.sockets_for(target.rarity)
    socketed = target.socketed_gems or []
    if max_sockets == 0:
        return Outcome.fail('This item cannot be socketed.')
    if len(socketed) >= max_sockets:
        return Outcome.fail('No empty sockets available.')

    base = target.stats or ItemStats()
    extra = gem.stats or ItemStats()
    stats = ItemStats(
        attack=(base.attack or 0) + (extra.attack or 0),
        defense=(base.defense or 0) + (extra.defense or 0),
        health_boost=(base.health_boost or 0) + (extra.health_boost or 0),
        energy_boost=(base.energy_boost or 0) + (extra.energy_boost or 0),
    )
    placed = InventoryItem.from_dict(gem.to_dict())
    placed.quantity = 1

    # Equipped and carried copies may be distinct objects after a reload
    copies = {id(i): i for i in player.inventory + equipped if i.id == target.id}
    for item in copies.values():
        item.stats = ItemStats.from_dict(stats.to_dict())
        item.max_sockets = max_sockets
        item.socketed_gems = list(socketed) + [placed]

    consume(player, gem)
    return Outcome.ok(f"Socketed {gem.name} into {target.name}.")


# --- Consumables -----------------------------------------------------------

def use_item(engine, item_id: str) -> Outcome:
    player = engine.player
    item = player.find_item(item_id)
    if item is None or item.quantity == 0:
        return Outcome.fail('Item not found.')

    if item.type == 'potion' and item.stats and (item.stats.health_boost or item.stats.energy_boost):
        player.health = min(player.max_health, player.health + (item.stats.health_boost or 0))
        player.energy = min(player.max_energy, player.energy + (item.stats.energy_boost or 0))
        consume(player, item)
        return Outcome.ok('Potion used.')

    if item.id == DOG_WHISTLE_ID:
        return use_dog_whistle(engine)

    return Outcome.fail('Nothing happens.')


def use_dog_whistle(engine) -> Outcome:
    player = engine.player
    companion = player.companion or Companion(
        id='companion-dog',
        name='Scout Dog',
        type='dog',
        icon='🐕',
        ability='Tracks nearby creatures.',
    )
    live = [m for m in engine.state.monsters if m.is_alive]
    nearest = min(
        live,
        key=lambda m: haversine_m(player.position.x, player.position.y, m.position.x, m.position.y),
        default=None,
    )
    if nearest is None or haversine_m(
        player.position.x, player.position.y, nearest.position.x, nearest.position.y
    ) > engine.config.companion_track_range_m:
        return Outcome.fail("Your dog couldn't find any creatures nearby.")

    player.movement_flag = Coordinate.from_dict(nearest.position.to_dict())
    companion.active = True
    companion.last_ping = timezone.now()
    player.companion = companion
    return Outcome.ok(
        f"Your dog tracked a {nearest.name}! Check your movement target.",
        monster_id=nearest.id,
    )


# --- Map loot --------------------------------------------------------------

def spawn_loot(engine, position: Coordinate, level: int) -> LootItem:
    kind = engine.rng.choice(engine.catalogs.map_loot)
    rarity = 'rare' if engine.rng.random() > 0.7 else 'common'
    value = max(1, round_half_up(level * kind['per_level']))
    stats = ItemStats(attack=value) if kind['stat'] == 'attack' else ItemStats(defense=value)
    loot = LootItem(
        id=new_id('loot'),
        name=kind['name'],
        type=kind['type'],
        rarity=rarity,
        quantity=1,
        stats=stats,
        icon=kind.get('icon', ''),
        position=Coordinate.from_dict(position.to_dict()),
        spawn_time=timezone.now(),
        level=level,
    )
    engine.loot_items.append(loot)
    return loot


def pickup_loot(engine, loot_id: str) -> bool:
    loot = next((l for l in engine.loot_items if l.id == loot_id), None)
    if loot is None:
        return False
    add_to_inventory(engine.player, loot.to_inventory_item())
    engine.loot_items = [l for l in engine.loot_items if l.id != loot_id]
    engine.emit('loot_picked_up', item=loot.to_inventory_item().to_dict())
    return True


def check_for_loot(engine, lat: float, lon: float) -> List[str]:
    radius = engine.config.loot_pickup_radius_m
    near = [
        l.id for l in engine.loot_items
        if haversine_m(lat, lon, l.position.x, l.position.y) <= radius + EPS
    ]
    for loot_id in near:
        pickup_loot(engine, loot_id)
    return near
