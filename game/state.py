"""
Game state data model.
Plain dataclasses owned by a single GameEngine; every type converts to and
from JSON-safe dicts so a GameState snapshot round-trips losslessly.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional
import uuid

REAL_WORLD = 'real-world'

ITEM_TYPES = ('weapon', 'armor', 'accessory', 'gem', 'potion', 'resource', 'quest')
RARITIES = ('common', 'uncommon', 'rare', 'epic', 'legendary')
RESOURCE_TYPES = ('wood', 'stone', 'iron', 'food')
LEDGER_TYPES = ('wood', 'stone', 'iron', 'food', 'gold')
BUILDING_TYPES = (
    'house', 'tower', 'barracks', 'market', 'farm',
    'mine', 'lumbermill', 'fortress', 'wall', 'warehouse',
)
EQUIPMENT_SLOTS = ('head', 'chest', 'hands', 'feet', 'weapon', 'shield', 'ring', 'amulet')


class SnapshotError(Exception):
    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code


def new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


def _dt_out(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _dt_in(value) -> Optional[datetime]:
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


@dataclass
class Coordinate:
    x: float  # latitude
    y: float  # longitude
    realm: str = REAL_WORLD

    def to_dict(self) -> Dict[str, Any]:
        return {'x': self.x, 'y': self.y, 'realm': self.realm}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Coordinate':
        return cls(x=float(data['x']), y=float(data['y']), realm=data.get('realm') or REAL_WORLD)


def _coord_in(data) -> Optional[Coordinate]:
    return Coordinate.from_dict(data) if data else None


@dataclass
class ItemStats:
    attack: Optional[int] = None
    defense: Optional[int] = None
    health_boost: Optional[int] = None
    energy_boost: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'attack': self.attack,
            'defense': self.defense,
            'health_boost': self.health_boost,
            'energy_boost': self.energy_boost,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ItemStats':
        return cls(
            attack=data.get('attack'),
            defense=data.get('defense'),
            health_boost=data.get('health_boost'),
            energy_boost=data.get('energy_boost'),
        )


@dataclass
class InventoryItem:
    id: str
    name: str
    type: str
    rarity: str = 'common'
    quantity: int = 1
    stats: Optional[ItemStats] = None
    icon: str = ''
    max_sockets: Optional[int] = None
    socketed_gems: Optional[List['InventoryItem']] = None
    gem_element: Optional[str] = None
    ability_name: Optional[str] = None
    ability_description: Optional[str] = None
    # Explicit equipment slot; inferred from type/name when unset
    slot: Optional[str] = None

    @property
    def is_socketable(self) -> bool:
        return self.type in ('weapon', 'armor')

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'type': self.type,
            'rarity': self.rarity,
            'quantity': self.quantity,
            'stats': self.stats.to_dict() if self.stats else None,
            'icon': self.icon,
            'max_sockets': self.max_sockets,
            'socketed_gems': [g.to_dict() for g in self.socketed_gems] if self.socketed_gems is not None else None,
            'gem_element': self.gem_element,
            'ability_name': self.ability_name,
            'ability_description': self.ability_description,
            'slot': self.slot,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'InventoryItem':
        gems = data.get('socketed_gems')
        stats = data.get('stats')
        return cls(
            id=str(data['id']),
            name=data['name'],
            type=data['type'],
            rarity=data.get('rarity', 'common'),
            quantity=int(data.get('quantity', 1)),
            stats=ItemStats.from_dict(stats) if stats else None,
            icon=data.get('icon', ''),
            max_sockets=data.get('max_sockets'),
            socketed_gems=[InventoryItem.from_dict(g) for g in gems] if gems is not None else None,
            gem_element=data.get('gem_element'),
            ability_name=data.get('ability_name'),
            ability_description=data.get('ability_description'),
            slot=data.get('slot'),
        )


@dataclass
class LootItem(InventoryItem):
    """An item lying on the map until the player walks over it."""
    position: Optional[Coordinate] = None
    spawn_time: Optional[datetime] = None
    level: int = 1

    def to_inventory_item(self) -> InventoryItem:
        return InventoryItem.from_dict(InventoryItem.to_dict(self))


@dataclass
class PlayerSkill:
    id: str
    name: str
    description: str = ''
    icon: str = ''
    level: int = 1
    max_level: int = 5
    type: str = 'passive'
    stats: Optional[ItemStats] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'icon': self.icon,
            'level': self.level,
            'max_level': self.max_level,
            'type': self.type,
            'stats': self.stats.to_dict() if self.stats else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PlayerSkill':
        stats = data.get('stats')
        return cls(
            id=str(data['id']),
            name=data['name'],
            description=data.get('description', ''),
            icon=data.get('icon', ''),
            level=int(data.get('level', 1)),
            max_level=int(data.get('max_level', 5)),
            type=data.get('type', 'passive'),
            stats=ItemStats.from_dict(stats) if stats else None,
        )


@dataclass
class Companion:
    id: str
    name: str
    type: str = 'dog'
    icon: str = ''
    active: bool = True
    ability: str = ''
    last_ping: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'type': self.type,
            'icon': self.icon,
            'active': self.active,
            'ability': self.ability,
            'last_ping': _dt_out(self.last_ping),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Companion':
        return cls(
            id=str(data['id']),
            name=data['name'],
            type=data.get('type', 'dog'),
            icon=data.get('icon', ''),
            active=bool(data.get('active', True)),
            ability=data.get('ability', ''),
            last_ping=_dt_in(data.get('last_ping')),
        )


@dataclass
class Resource:
    type: str
    amount: int
    max_amount: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {'type': self.type, 'amount': self.amount, 'max_amount': self.max_amount}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Resource':
        return cls(type=data['type'], amount=int(data['amount']), max_amount=data.get('max_amount'))


@dataclass
class Building:
    id: str
    type: str
    position: Coordinate
    owner: str
    level: int = 1
    health: int = 100
    max_health: int = 100
    is_under_construction: bool = False
    construction_time: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'type': self.type,
            'position': self.position.to_dict(),
            'owner': self.owner,
            'level': self.level,
            'health': self.health,
            'max_health': self.max_health,
            'is_under_construction': self.is_under_construction,
            'construction_time': self.construction_time,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Building':
        return cls(
            id=str(data['id']),
            type=data['type'],
            position=Coordinate.from_dict(data['position']),
            owner=str(data['owner']),
            level=int(data.get('level', 1)),
            health=int(data.get('health', 100)),
            max_health=int(data.get('max_health', 100)),
            is_under_construction=bool(data.get('is_under_construction', False)),
            construction_time=int(data.get('construction_time') or 0),
        )


@dataclass
class City:
    id: str
    name: str
    position: Coordinate
    level: int = 1
    population: int = 0
    max_population: int = 0
    resources: List[Resource] = field(default_factory=list)
    buildings: List[Building] = field(default_factory=list)
    production_rates: Dict[str, int] = field(default_factory=dict)

    def resource(self, rtype: str) -> Optional[Resource]:
        for r in self.resources:
            if r.type == rtype:
                return r
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'position': self.position.to_dict(),
            'level': self.level,
            'population': self.population,
            'max_population': self.max_population,
            'resources': [r.to_dict() for r in self.resources],
            'buildings': [b.to_dict() for b in self.buildings],
            'production_rates': dict(self.production_rates),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'City':
        return cls(
            id=str(data['id']),
            name=data['name'],
            position=Coordinate.from_dict(data['position']),
            level=int(data.get('level', 1)),
            population=int(data.get('population', 0)),
            max_population=int(data.get('max_population', 0)),
            resources=[Resource.from_dict(r) for r in data.get('resources', [])],
            buildings=[Building.from_dict(b) for b in data.get('buildings', [])],
            production_rates={k: int(v) for k, v in (data.get('production_rates') or {}).items()},
        )


@dataclass
class Territory:
    id: str
    position: Coordinate
    owner_id: str
    owner_name: str
    claimed_at: datetime
    is_active: bool = True  # False = black flag (capturable, double energy cost)
    color: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'position': self.position.to_dict(),
            'owner_id': self.owner_id,
            'owner_name': self.owner_name,
            'claimed_at': _dt_out(self.claimed_at),
            'is_active': self.is_active,
            'color': self.color,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Territory':
        claimed_at = _dt_in(data.get('claimed_at'))
        if claimed_at is None:
            raise SnapshotError('bad_territory', f"Territory {data.get('id')} has no claim time")
        return cls(
            id=str(data['id']),
            position=Coordinate.from_dict(data['position']),
            owner_id=str(data['owner_id']),
            owner_name=data.get('owner_name', ''),
            claimed_at=claimed_at,
            is_active=bool(data.get('is_active', True)),
            color=data.get('color'),
        )


@dataclass
class Monster:
    id: str
    name: str
    level: int
    health: int
    max_health: int
    attack: int
    defense: int
    position: Coordinate
    icon: str = ''
    loot: List[InventoryItem] = field(default_factory=list)

    @property
    def is_alive(self) -> bool:
        return self.health > 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'level': self.level,
            'health': self.health,
            'max_health': self.max_health,
            'attack': self.attack,
            'defense': self.defense,
            'position': self.position.to_dict(),
            'icon': self.icon,
            'loot': [i.to_dict() for i in self.loot],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Monster':
        return cls(
            id=str(data['id']),
            name=data['name'],
            level=int(data['level']),
            health=int(data['health']),
            max_health=int(data['max_health']),
            attack=int(data['attack']),
            defense=int(data['defense']),
            position=Coordinate.from_dict(data['position']),
            icon=data.get('icon', ''),
            loot=[InventoryItem.from_dict(i) for i in data.get('loot', [])],
        )


@dataclass
class ResourceNode:
    id: str
    type: str
    position: Coordinate
    amount: int
    max_amount: int
    regeneration_rate: int
    icon: str = ''

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'type': self.type,
            'position': self.position.to_dict(),
            'amount': self.amount,
            'max_amount': self.max_amount,
            'regeneration_rate': self.regeneration_rate,
            'icon': self.icon,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ResourceNode':
        return cls(
            id=str(data['id']),
            type=data['type'],
            position=Coordinate.from_dict(data['position']),
            amount=int(data['amount']),
            max_amount=int(data['max_amount']),
            regeneration_rate=int(data['regeneration_rate']),
            icon=data.get('icon', ''),
        )


@dataclass
class Player:
    id: str
    name: str
    level: int = 1
    experience: int = 0
    next_level_exp: int = 100
    health: int = 100
    max_health: int = 100
    energy: int = 50
    max_energy: int = 50
    attack: int = 10
    defense: int = 5
    gold: int = 500
    position: Coordinate = field(default_factory=lambda: Coordinate(0.0, 0.0))
    inventory: List[InventoryItem] = field(default_factory=list)
    equipment: Dict[str, InventoryItem] = field(default_factory=dict)
    skills: List[PlayerSkill] = field(default_factory=list)
    territory: List[str] = field(default_factory=list)
    cities: List[City] = field(default_factory=list)
    alliance: Optional[str] = None
    movement_flag: Optional[Coordinate] = None
    companion: Optional[Companion] = None

    def find_item(self, item_id: str) -> Optional[InventoryItem]:
        for item in self.inventory:
            if item.id == item_id:
                return item
        return None

    @property
    def first_city(self) -> Optional[City]:
        return self.cities[0] if self.cities else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'level': self.level,
            'experience': self.experience,
            'next_level_exp': self.next_level_exp,
            'health': self.health,
            'max_health': self.max_health,
            'energy': self.energy,
            'max_energy': self.max_energy,
            'attack': self.attack,
            'defense': self.defense,
            'gold': self.gold,
            'position': self.position.to_dict(),
            'inventory': [i.to_dict() for i in self.inventory],
            'equipment': {slot: item.to_dict() for slot, item in self.equipment.items()},
            'skills': [s.to_dict() for s in self.skills],
            'territory': list(self.territory),
            'cities': [c.to_dict() for c in self.cities],
            'alliance': self.alliance,
            'movement_flag': self.movement_flag.to_dict() if self.movement_flag else None,
            'companion': self.companion.to_dict() if self.companion else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Player':
        companion = data.get('companion')
        return cls(
            id=str(data['id']),
            name=data['name'],
            level=int(data['level']),
            experience=int(data['experience']),
            next_level_exp=int(data['next_level_exp']),
            health=int(data['health']),
            max_health=int(data['max_health']),
            energy=int(data['energy']),
            max_energy=int(data['max_energy']),
            attack=int(data['attack']),
            defense=int(data['defense']),
            gold=int(data['gold']),
            position=Coordinate.from_dict(data['position']),
            inventory=[InventoryItem.from_dict(i) for i in data.get('inventory', [])],
            equipment={slot: InventoryItem.from_dict(i) for slot, i in (data.get('equipment') or {}).items() if i},
            skills=[PlayerSkill.from_dict(s) for s in data.get('skills', [])],
            territory=[str(t) for t in data.get('territory', [])],
            cities=[City.from_dict(c) for c in data.get('cities', [])],
            alliance=data.get('alliance'),
            movement_flag=_coord_in(data.get('movement_flag')),
            companion=Companion.from_dict(companion) if companion else None,
        )


@dataclass
class GameState:
    """Unit of save/load."""
    user_id: str
    player: Player
    territories: List[Territory] = field(default_factory=list)
    buildings: List[Building] = field(default_factory=list)
    monsters: List[Monster] = field(default_factory=list)
    resource_nodes: List[ResourceNode] = field(default_factory=list)
    has_placed_first_flag: bool = False
    last_saved: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'user_id': self.user_id,
            'player': self.player.to_dict(),
            'territories': [t.to_dict() for t in self.territories],
            'buildings': [b.to_dict() for b in self.buildings],
            'monsters': [m.to_dict() for m in self.monsters],
            'resource_nodes': [n.to_dict() for n in self.resource_nodes],
            'has_placed_first_flag': self.has_placed_first_flag,
            'last_saved': _dt_out(self.last_saved),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'GameState':
        """Build a complete GameState or raise SnapshotError; never returns a partial state."""
        if not isinstance(data, dict):
            raise SnapshotError('not_an_object', 'Snapshot must be a JSON object')
        try:
            return cls(
                user_id=str(data.get('user_id') or 'anonymous'),
                player=Player.from_dict(data['player']),
                territories=[Territory.from_dict(t) for t in data.get('territories') or []],
                buildings=[Building.from_dict(b) for b in data.get('buildings') or []],
                monsters=[Monster.from_dict(m) for m in data.get('monsters') or []],
                resource_nodes=[ResourceNode.from_dict(n) for n in data.get('resource_nodes') or []],
                has_placed_first_flag=bool(data.get('has_placed_first_flag', False)),
                last_saved=_dt_in(data.get('last_saved')),
            )
        except SnapshotError:
            raise
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise SnapshotError('malformed', f"Malformed snapshot: {e!r}")


def default_player() -> Player:
    """Fresh player created at the first GPS fix."""
    return Player(
        id='player-1',
        name='Hero',
        inventory=[
            InventoryItem(id='sword-1', name='Iron Sword', type='weapon', stats=ItemStats(attack=5), icon='⚔️'),
            InventoryItem(id='potion-1', name='Health Potion', type='potion', quantity=5,
                          stats=ItemStats(health_boost=50), icon='🧪'),
            InventoryItem(id='dog-whistle', name='Dog Whistle', type='quest', icon='🦴'),
        ],
    )
