"""
Static game catalogs: monsters, resource nodes, buildings, anvil recipes and
loot tables. Any table can be replaced through settings.GAME_CATALOGS.
"""
import copy
from dataclasses import dataclass, field
from typing import Dict, List

from django.conf import settings

# name, level, icon, attack, defense, min_tier
MONSTERS = [
    {'name': 'Rat', 'level': 1, 'icon': '🐀', 'attack': 6, 'defense': 2, 'min_tier': 0},
    {'name': 'Spider', 'level': 2, 'icon': '🕷️', 'attack': 10, 'defense': 3, 'min_tier': 0},
    {'name': 'Deer', 'level': 2, 'icon': '🦌', 'attack': 4, 'defense': 2, 'min_tier': 0},
    {'name': 'Wolf', 'level': 3, 'icon': '🐺', 'attack': 12, 'defense': 4, 'min_tier': 0},
    {'name': 'Goblin', 'level': 4, 'icon': '👹', 'attack': 14, 'defense': 5, 'min_tier': 0},
    {'name': 'Orc', 'level': 6, 'icon': '👺', 'attack': 18, 'defense': 7, 'min_tier': 0},
    {'name': 'Bandit', 'level': 8, 'icon': '🗡️', 'attack': 20, 'defense': 8, 'min_tier': 0},

    {'name': 'Troll', 'level': 12, 'icon': '🧌', 'attack': 28, 'defense': 14, 'min_tier': 1},
    {'name': 'Ogre', 'level': 14, 'icon': '👹', 'attack': 30, 'defense': 16, 'min_tier': 1},
    {'name': 'Harpy', 'level': 16, 'icon': '🦅', 'attack': 32, 'defense': 12, 'min_tier': 1},
    {'name': 'Wraith', 'level': 18, 'icon': '👻', 'attack': 35, 'defense': 14, 'min_tier': 1},

    {'name': 'Golem', 'level': 22, 'icon': '🪨', 'attack': 40, 'defense': 24, 'min_tier': 2},
    {'name': 'Vampire', 'level': 24, 'icon': '🧛', 'attack': 42, 'defense': 20, 'min_tier': 2},
    {'name': 'Wyvern', 'level': 26, 'icon': '🐉', 'attack': 46, 'defense': 22, 'min_tier': 2},
    {'name': 'Giant', 'level': 28, 'icon': '🦣', 'attack': 50, 'defense': 26, 'min_tier': 2},

    {'name': 'Demon', 'level': 32, 'icon': '😈', 'attack': 55, 'defense': 28, 'min_tier': 3},
    {'name': 'Hydra', 'level': 34, 'icon': '🐍', 'attack': 60, 'defense': 30, 'min_tier': 3},
    {'name': 'Lich', 'level': 36, 'icon': '☠️', 'attack': 62, 'defense': 32, 'min_tier': 3},
    {'name': 'Dragon', 'level': 40, 'icon': '🐉', 'attack': 70, 'defense': 36, 'min_tier': 3},
]

RESOURCE_NODES = [
    {'type': 'wood', 'icon': '🌳', 'max': 500, 'regen': 10},
    {'type': 'wood', 'icon': '🌲', 'max': 500, 'regen': 10},
    {'type': 'wood', 'icon': '🌴', 'max': 500, 'regen': 10},
    {'type': 'stone', 'icon': '🪨', 'max': 300, 'regen': 5},
    {'type': 'iron', 'icon': '⛓️', 'max': 200, 'regen': 3},
    {'type': 'food', 'icon': '🍎', 'max': 400, 'regen': 15},
    {'type': 'food', 'icon': '🌿', 'max': 400, 'regen': 15},
    {'type': 'food', 'icon': '🍄', 'max': 400, 'regen': 15},
]

BUILDINGS = {
    'house': {
        'name': 'House', 'icon': '🏠', 'description': 'Increases population capacity',
        'costs': {'wood': 50, 'stone': 30}, 'build_time': 30, 'city_level': 1,
    },
    'tower': {
        'name': 'Tower', 'icon': '🗼', 'description': 'Defensive structure, increases territory defense',
        'costs': {'stone': 100, 'iron': 50}, 'build_time': 60, 'city_level': 1,
    },
    'barracks': {
        'name': 'Barracks', 'icon': '⚔️', 'description': 'Train troops and increase military power',
        'costs': {'wood': 80, 'iron': 40}, 'build_time': 45, 'city_level': 1,
    },
    'farm': {
        'name': 'Farm', 'icon': '🌾', 'description': 'Produces food over time',
        'costs': {'wood': 40, 'stone': 20}, 'build_time': 30, 'city_level': 1,
    },
    'mine': {
        'name': 'Mine', 'icon': '⛏️', 'description': 'Produces stone and iron',
        'costs': {'wood': 60, 'stone': 40}, 'build_time': 40, 'city_level': 1,
    },
    'lumbermill': {
        'name': 'Lumbermill', 'icon': '🪵', 'description': 'Produces wood over time',
        'costs': {'wood': 30, 'stone': 20}, 'build_time': 25, 'city_level': 1,
    },
    'market': {
        'name': 'Market', 'icon': '🏪', 'description': 'Trade resources and goods',
        'costs': {'wood': 70, 'stone': 50, 'gold': 100}, 'build_time': 50, 'city_level': 1,
    },
    'fortress': {
        'name': 'Fortress', 'icon': '🏰', 'description': 'Powerful defensive structure',
        'costs': {'stone': 200, 'iron': 100, 'gold': 200}, 'build_time': 120, 'city_level': 3,
    },
    'wall': {
        'name': 'Wall', 'icon': '🧱', 'description': 'Slows attackers at the territory edge',
        'costs': {'stone': 60}, 'build_time': 20, 'city_level': 1,
    },
    'warehouse': {
        'name': 'Warehouse', 'icon': '📦', 'description': 'Stores surplus resources',
        'costs': {'wood': 60, 'stone': 40}, 'build_time': 35, 'city_level': 1,
    },
}

RECIPES = {
    'iron-sword': {
        'name': 'Iron Sword', 'type': 'weapon', 'rarity': 'common', 'icon': '⚔️',
        'stats': {'attack': 5},
        'costs': {'wood': 10, 'iron': 15, 'gold': 25},
    },
    'hunter-bow': {
        'name': 'Huntsman Bow', 'type': 'weapon', 'rarity': 'common', 'icon': '🏹',
        'stats': {'attack': 4},
        'costs': {'wood': 18, 'iron': 6, 'gold': 20},
    },
    'leather-armor': {
        'name': 'Leather Armor', 'type': 'armor', 'rarity': 'common', 'icon': '🧥',
        'stats': {'defense': 4},
        'costs': {'wood': 8, 'stone': 12, 'gold': 20},
    },
    'bronze-shield': {
        'name': 'Bronze Shield', 'type': 'armor', 'rarity': 'common', 'icon': '🛡️',
        'stats': {'defense': 5},
        'costs': {'wood': 6, 'iron': 10, 'gold': 18},
    },
    'silver-ring': {
        'name': 'Silver Ring', 'type': 'accessory', 'rarity': 'common', 'icon': '💍',
        'stats': {'attack': 1, 'defense': 1},
        'costs': {'iron': 6, 'gold': 30},
    },
    'ruby-gem': {
        'name': 'Ruby', 'type': 'gem', 'rarity': 'uncommon', 'icon': '🔴',
        'stats': {'attack': 3},
        'ability_name': 'Ignite',
        'ability_description': 'Adds a chance to burn enemies over time.',
        'gem_element': 'fire',
        'costs': {'stone': 20, 'gold': 40},
    },
    'sapphire-gem': {
        'name': 'Sapphire', 'type': 'gem', 'rarity': 'uncommon', 'icon': '🔵',
        'stats': {'defense': 3},
        'ability_name': 'Frostbite',
        'ability_description': 'Chills foes, slightly reducing their speed.',
        'gem_element': 'water',
        'costs': {'stone': 20, 'gold': 40},
    },
}

LOOT_WEAPONS = [
    {'name': 'Axe', 'icon': '🪓', 'attack': 5},
    {'name': 'Dagger', 'icon': '🗡️', 'attack': 4},
    {'name': 'Sword', 'icon': '⚔️', 'attack': 6},
    {'name': 'Spear', 'icon': '🗡️', 'attack': 6},
    {'name': 'Staff', 'icon': '🪄', 'attack': 3},
    {'name': 'Crossbow', 'icon': '🏹', 'attack': 6},
    {'name': 'Longbow', 'icon': '🏹', 'attack': 5},
    {'name': 'Shuriken', 'icon': '🌀', 'attack': 4},
    {'name': 'Sling', 'icon': '🪢', 'attack': 3},
    {'name': 'Blowdart', 'icon': '🎯', 'attack': 3},
    {'name': 'Brass Knuckle', 'icon': '🥊', 'attack': 4},
]

LOOT_ARMOR = [
    {'name': 'Dragon Scalemail', 'icon': '🐉', 'defense': 8},
    {'name': "Engineer's Armor", 'icon': '🛡️', 'defense': 6},
    {'name': "Huntsman's Armor", 'icon': '🧥', 'defense': 5},
    {'name': 'Nightstalker Cloak', 'icon': '🧥', 'defense': 4},
    {'name': 'Phalanx Shield', 'icon': '🛡️', 'defense': 7},
    {'name': 'Shinobi Mask', 'icon': '🥷', 'defense': 3},
    {'name': "Fighter's Mantle", 'icon': '🧥', 'defense': 4},
]

LOOT_ACCESSORIES = [
    {'name': 'Ring', 'icon': '💍', 'attack': 1, 'defense': 1},
    {'name': 'Amulet', 'icon': '📿', 'attack': 1, 'defense': 1},
    {'name': 'Crown', 'icon': '👑', 'defense': 2},
]

LOOT_GEMS = [
    {
        'name': 'Ruby', 'icon': '🔴', 'element': 'fire',
        'ability_name': 'Ignite',
        'ability_description': 'Adds a chance to burn enemies over time.',
        'stats': {'attack': 2},
    },
    {
        'name': 'Sapphire', 'icon': '🔵', 'element': 'water',
        'ability_name': 'Frostbite',
        'ability_description': 'Chills foes, slightly reducing their speed.',
        'stats': {'defense': 2},
    },
    {
        'name': 'Emerald', 'icon': '🟢', 'element': 'earth',
        'ability_name': 'Stoneguard',
        'ability_description': 'Grants a defensive ward when struck.',
        'stats': {'health_boost': 10},
    },
    {
        'name': 'Amethyst', 'icon': '🟣', 'element': 'wind',
        'ability_name': 'Zephyr Guard',
        'ability_description': 'Improves evasion and energy recovery.',
        'stats': {'energy_boost': 6},
    },
]

LOOT_RESOURCES = [
    {'name': 'Wood Bundle', 'type': 'wood', 'icon': '🪵'},
    {'name': 'Stone Cache', 'type': 'stone', 'icon': '🪨'},
    {'name': 'Iron Ingots', 'type': 'iron', 'icon': '⛓️'},
    {'name': 'Food Crate', 'type': 'food', 'icon': '🍎'},
]

# Items that can be dropped on the map by spawn_loot; stats scale with level
MAP_LOOT = [
    {'name': 'Iron Sword', 'type': 'weapon', 'icon': '⚔️', 'stat': 'attack', 'per_level': 2},
    {'name': 'Leather Helmet', 'type': 'armor', 'icon': '🪖', 'stat': 'defense', 'per_level': 1},
    {'name': 'Steel Chest Plate', 'type': 'armor', 'icon': '🛡️', 'stat': 'defense', 'per_level': 1.5},
    {'name': 'Bronze Gauntlets', 'type': 'armor', 'icon': '🥊', 'stat': 'defense', 'per_level': 1},
    {'name': 'Iron Boots', 'type': 'armor', 'icon': '👢', 'stat': 'defense', 'per_level': 1},
]

RARITY_SCALE = {
    'common': 1,
    'uncommon': 0.85,
    'rare': 0.5,
    'epic': 0.25,
    'legendary': 0.15,
}

SOCKET_CAPACITY = {
    'common': 1,
    'uncommon': 2,
    'rare': 3,
    'epic': 4,
}

# (upper bound of roll, rarity), checked in order
RARITY_ROLLS = [
    (0.02, 'epic'),
    (0.10, 'rare'),
    (0.30, 'uncommon'),
]

# Armor slot by name keyword, checked in order; unmatched armor goes to chest
ARMOR_SLOT_KEYWORDS = [
    (('helmet', 'crown'), 'head'),
    (('chest', 'tunic'), 'chest'),
    (('glove', 'gauntlet'), 'hands'),
    (('boot',), 'feet'),
]

CATALOG_NAMES = (
    'monsters', 'resource_nodes', 'buildings', 'recipes',
    'loot_weapons', 'loot_armor', 'loot_accessories', 'loot_gems', 'loot_resources',
    'map_loot', 'rarity_scale', 'socket_capacity', 'rarity_rolls', 'armor_slot_keywords',
)


@dataclass
class Catalogs:
    monsters: List[dict] = field(default_factory=lambda: copy.deepcopy(MONSTERS))
    resource_nodes: List[dict] = field(default_factory=lambda: copy.deepcopy(RESOURCE_NODES))
    buildings: Dict[str, dict] = field(default_factory=lambda: copy.deepcopy(BUILDINGS))
    recipes: Dict[str, dict] = field(default_factory=lambda: copy.deepcopy(RECIPES))
    loot_weapons: List[dict] = field(default_factory=lambda: copy.deepcopy(LOOT_WEAPONS))
    loot_armor: List[dict] = field(default_factory=lambda: copy.deepcopy(LOOT_ARMOR))
    loot_accessories: List[dict] = field(default_factory=lambda: copy.deepcopy(LOOT_ACCESSORIES))
    loot_gems: List[dict] = field(default_factory=lambda: copy.deepcopy(LOOT_GEMS))
    loot_resources: List[dict] = field(default_factory=lambda: copy.deepcopy(LOOT_RESOURCES))
    map_loot: List[dict] = field(default_factory=lambda: copy.deepcopy(MAP_LOOT))
    rarity_scale: Dict[str, float] = field(default_factory=lambda: dict(RARITY_SCALE))
    socket_capacity: Dict[str, int] = field(default_factory=lambda: dict(SOCKET_CAPACITY))
    rarity_rolls: list = field(default_factory=lambda: list(RARITY_ROLLS))
    armor_slot_keywords: list = field(default_factory=lambda: list(ARMOR_SLOT_KEYWORDS))

    @classmethod
    def from_settings(cls) -> 'Catalogs':
        overrides = getattr(settings, 'GAME_CATALOGS', {}) or {}
        values = {name: copy.deepcopy(overrides[name]) for name in CATALOG_NAMES if name in overrides}
        return cls(**values)

    def sockets_for(self, rarity: str) -> int:
        return self.socket_capacity.get(rarity, 0)

    def rarity_for_roll(self, roll: float) -> str:
        for bound, rarity in self.rarity_rolls:
            if roll < bound:
                return rarity
        return 'common'
