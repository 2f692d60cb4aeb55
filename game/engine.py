"""
GameEngine: the single owner of one player's mutable world.

Position and gesture events come in through plain method calls; deferred
effects (counter-attacks, regeneration, construction, autosave) sit in the
engine's EventQueue and fire from tick(). Observers register with
add_listener() and receive (event, payload) pairs.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, List, Optional
import copy
import logging
import math
import random
import time

from .catalogs import Catalogs
from .conf import GameConfig
from .results import Outcome
from .scheduler import EventQueue
from .services import combat as combat_svc
from .services import crafting, inventory, persistence, progression, territory
from .services.world import WorldGenerator
from .state import Coordinate, GameState, LootItem, ResourceNode, default_player
from .utils.geo import chunk_for, haversine_m

logger = logging.getLogger(__name__)


@dataclass
class AuthContext:
    user_id: Optional[str] = None
    username: str = ''
    is_admin: bool = False

    def __post_init__(self):
        if self.user_id is not None:
            self.user_id = str(self.user_id)

    @property
    def authenticated(self) -> bool:
        return self.user_id is not None

    @classmethod
    def from_user(cls, user) -> 'AuthContext':
        if user is None or not getattr(user, 'is_authenticated', False):
            return cls()
        return cls(user_id=str(user.pk), username=user.get_username(), is_admin=bool(user.is_staff))


class GameEngine:
    def __init__(self, auth: AuthContext = None, config: GameConfig = None, catalogs: Catalogs = None,
                 clock: Callable[[], float] = None, rng: random.Random = None, seed=None,
                 autosave: bool = True):
        self.auth = auth or AuthContext()
        self.config = config or GameConfig.from_settings()
        self.catalogs = catalogs or Catalogs.from_settings()
        self.clock = clock or time.monotonic
        self.scheduler = EventQueue(self.clock)
        self.rng = rng or random.Random(seed)

        self.state = GameState(user_id=self.auth.user_id or 'anonymous', player=default_player())
        self.loot_items: List[LootItem] = []
        self.owner_bank_gold: Optional[int] = None
        self.last_save_time: Optional[float] = None
        self._listeners: List[Callable[[str, dict], None]] = []

        self.world = WorldGenerator(self)
        self.combat = combat_svc.CombatResolver(self)
        if autosave:
            persistence.start_autosave(self)

    # --- accessors ---------------------------------------------------------

    @property
    def player(self):
        return self.state.player

    @property
    def territories(self):
        return self.state.territories

    @property
    def buildings(self):
        return self.state.buildings

    @property
    def monsters(self):
        return self.state.monsters

    @property
    def resource_nodes(self):
        return self.state.resource_nodes

    @property
    def has_placed_first_flag(self) -> bool:
        return self.state.has_placed_first_flag

    @property
    def in_combat(self) -> bool:
        return self.combat.in_combat

    @property
    def current_enemy(self):
        return self.combat.current_enemy

    def snapshot(self) -> GameState:
        return copy.deepcopy(self.state)

    def restore(self, state: GameState) -> None:
        """Replace the world with a loaded snapshot. Transient state is reset."""
        self.state = copy.deepcopy(state)
        self.combat.clear()
        self.loot_items = []
        self.world.reset()
        # Chunks that already hold restored entities are not populated again
        size = self.config.world_chunk_size_km
        for entity in self.state.monsters + self.state.resource_nodes:
            self.world.generated_chunks.add(chunk_for(entity.position.x, entity.position.y, size)[2])

    # --- events ------------------------------------------------------------

    def add_listener(self, callback: Callable[[str, dict], None]) -> Callable[[], None]:
        """Register an observer; returns a function that unregisters it."""
        self._listeners.append(callback)
        return lambda: self._listeners.remove(callback) if callback in self._listeners else None

    def emit(self, event: str, **payload) -> None:
        for callback in list(self._listeners):
            try:
                callback(event, payload)
            except Exception as e:
                logger.error(f"Listener {callback!r} failed on {event}: {e}")

    def tick(self) -> int:
        """Fire every timer that is due. Returns how many fired."""
        return self.scheduler.run_due()

    # --- movement ----------------------------------------------------------

    def initialize_player_position(self, lat: float, lon: float) -> None:
        self.player.position = Coordinate(lat, lon)

    def movement_energy_cost(self, lat: float, lon: float) -> int:
        pos = self.player.position
        distance = haversine_m(pos.x, pos.y, lat, lon)
        cost = math.floor(distance / self.config.meters_per_energy)
        if cost and territory.black_flag_territory_at(self, lat, lon, foreign_only=True):
            cost *= self.config.black_flag_energy_multiplier
        return cost

    def update_player_gps_position(self, lat: float, lon: float) -> dict:
        player = self.player
        distance = haversine_m(player.position.x, player.position.y, lat, lon)
        cost = self.movement_energy_cost(lat, lon)
        player.energy = max(0, player.energy - cost)
        player.position = Coordinate(lat, lon)

        self.world.ensure_near(lat, lon)
        result = self.check_for_nearby_entities_at(lat, lon)
        result.update(distance=distance, energy_cost=cost)
        return result

    def check_for_nearby_entities_at(self, lat: float, lon: float) -> dict:
        monster = self.combat.check_encounter(lat, lon)
        node = self.check_for_resource_node(lat, lon)
        picked = inventory.check_for_loot(self, lat, lon)
        return {
            'encounter': monster.id if monster else None,
            'harvested': node.id if node else None,
            'loot_picked_up': picked,
        }

    def set_movement_target(self, lat: Optional[float], lon: Optional[float]) -> None:
        self.player.movement_flag = Coordinate(lat, lon) if lat is not None and lon is not None else None

    def teleport_to_flag(self, territory_id: str) -> bool:
        target = next((t for t in self.state.territories if t.id == territory_id), None)
        if target is None:
            return False
        self.update_player_gps_position(target.position.x, target.position.y)
        return True

    # --- harvesting --------------------------------------------------------

    def check_for_resource_node(self, lat: float, lon: float) -> Optional[ResourceNode]:
        if self.player.first_city is None:
            return None
        radius = self.config.harvest_radius_m
        for node in self.state.resource_nodes:
            if node.amount > 0 and haversine_m(lat, lon, node.position.x, node.position.y) <= radius:
                self.harvest_resource(node)
                return node
        return None

    def harvest_resource(self, node: ResourceNode) -> int:
        amount = min(node.amount, self.config.harvest_amount)
        node.amount = max(0, node.amount - amount)
        stored = crafting.add_to_ledger(self.player.first_city, node.type, amount)
        self.scheduler.schedule(
            self.config.resource_regen_delay_s,
            lambda: self.regenerate_node(node.id),
            label=f"regen:{node.id}",
        )
        self.emit('harvest', node_id=node.id, type=node.type, amount=amount, stored=stored)
        return amount

    def regenerate_node(self, node_id: str) -> bool:
        node = next((n for n in self.state.resource_nodes if n.id == node_id), None)
        if node is None:
            return False
        node.amount = min(node.max_amount, node.amount + node.regeneration_rate)
        return True

    # --- territory ---------------------------------------------------------

    def is_location_claimed(self, lat: float, lon: float) -> bool:
        return territory.is_location_claimed(self, lat, lon)

    def place_first_flag(self, lat: float, lon: float) -> bool:
        return territory.place_first_flag(self, lat, lon)

    def place_additional_flag(self, lat: float, lon: float) -> bool:
        return territory.place_additional_flag(self, lat, lon)

    def can_build_at(self, lat: float, lon: float) -> bool:
        return territory.can_build_at(self, lat, lon)

    def can_move_to_location(self, lat: float, lon: float) -> bool:
        return territory.can_move_to_location(self, lat, lon)

    def remove_last_flag(self) -> bool:
        return territory.remove_last_flag(self)

    def set_territory_active(self, territory_id: str, active: bool) -> bool:
        return territory.set_territory_active(self, territory_id, active)

    def clear_first_flag(self) -> None:
        territory.clear_first_flag(self)

    # --- city, crafting, equipment ----------------------------------------

    def build_structure(self, building_type: str, lat: float, lon: float) -> Outcome:
        return crafting.build_structure(self, building_type, lat, lon)

    def collect_city_resources(self, city_id: str) -> bool:
        return crafting.collect_city_resources(self, city_id)

    def craft_at_anvil(self, recipe_id: str) -> Outcome:
        return crafting.craft_at_anvil(self, recipe_id)

    def generate_loot(self, level: int):
        return crafting.generate_loot(self, level)

    def socket_gem(self, target_item_id: str, gem_id: str) -> Outcome:
        return inventory.socket_gem(self, target_item_id, gem_id)

    def equip_item(self, item_id: str) -> Outcome:
        return inventory.equip_item(self, item_id)

    def unequip_item(self, slot: str) -> bool:
        return inventory.unequip_item(self, slot)

    def equipment_bonus(self) -> dict:
        return inventory.equipment_bonus(self)

    def use_item(self, item_id: str) -> Outcome:
        return inventory.use_item(self, item_id)

    def spawn_loot(self, position: Coordinate, level: int) -> LootItem:
        return inventory.spawn_loot(self, position, level)

    def pickup_loot(self, loot_id: str) -> bool:
        return inventory.pickup_loot(self, loot_id)

    # --- combat & progression ---------------------------------------------

    def start_combat(self, monster_id: str) -> bool:
        return self.combat.start_by_id(monster_id)

    def attack(self) -> dict:
        return self.combat.attack()

    def rest(self) -> None:
        self.combat.rest()

    def gain_experience(self, amount: int) -> int:
        return progression.gain_experience(self, amount)

    def learn_skill(self, skill_id: str) -> bool:
        return progression.learn_skill(self, skill_id)

    def upgrade_skill(self, skill_id: str) -> bool:
        return progression.upgrade_skill(self, skill_id)

    # --- persistence -------------------------------------------------------

    def save_game_local(self) -> GameState:
        return persistence.save_game_local(self)

    def load_game_local(self) -> bool:
        return persistence.load_game_local(self)

    def load_game_remote(self) -> bool:
        return persistence.load_game_remote(self)

    def load_game(self) -> Optional[str]:
        return persistence.load_game(self)

    def manual_save_game(self) -> Outcome:
        return persistence.manual_save_game(self)

    def delete_save_game(self) -> bool:
        return persistence.delete_save_game(self)

    def record_gold_spend(self, amount: int) -> Optional[int]:
        return persistence.record_gold_spend(self, amount)

    def refresh_owner_bank_gold(self) -> Optional[int]:
        return persistence.refresh_owner_bank_gold(self)
