"""
Two-party combat between the player and a single monster.
Idle -> InCombat(enemy) -> Idle; the enemy strikes back on a timer.
"""
from __future__ import annotations
from typing import Optional
import logging

from ..state import Coordinate, Monster
from ..utils.geo import haversine_m
from . import progression
from .inventory import add_to_inventory

logger = logging.getLogger(__name__)

ROLL_SIDES = 5


def hit_damage(attack: int, defense: int, roll: int) -> int:
    return max(1, attack - defense + roll)


def defeat_experience(monster_level: int, player_level: int) -> int:
    return max(25, monster_level * 25 + 100 + (monster_level - player_level) * 10)


def defeat_gold(monster_level: int) -> int:
    return monster_level * 10


class CombatResolver:
    def __init__(self, engine):
        self.engine = engine
        self.current_enemy: Optional[Monster] = None

    @property
    def in_combat(self) -> bool:
        return self.current_enemy is not None

    def clear(self):
        self.current_enemy = None

    def start(self, monster: Monster) -> bool:
        if self.in_combat or not monster.is_alive:
            return False
        self.current_enemy = monster
        logger.debug(f"Combat started with {monster.name} ({monster.id})")
        self.engine.emit('combat_started', monster=monster.to_dict())
        return True

    def start_by_id(self, monster_id: str) -> bool:
        monster = next((m for m in self.engine.state.monsters if m.id == monster_id), None)
        return monster is not None and self.start(monster)

    def check_encounter(self, lat: float, lon: float) -> Optional[Monster]:
        """Engage the first live monster within the encounter radius, if idle."""
        if self.in_combat:
            return None
        radius = self.engine.config.encounter_radius_m
        for m in self.engine.state.monsters:
            if m.is_alive and haversine_m(lat, lon, m.position.x, m.position.y) <= radius:
                self.start(m)
                return m
        return None

    def attack(self) -> dict:
        result = {
            'success': False, 'damage': 0, 'enemy_health': None,
            'defeated': False, 'experience': 0, 'gold': 0,
        }
        enemy = self.current_enemy
        if enemy is None:
            return result

        engine = self.engine
        player = engine.player
        damage = hit_damage(player.attack, enemy.defense, engine.rng.randrange(ROLL_SIDES))
        enemy.health = max(0, enemy.health - damage)
        result.update(success=True, damage=damage, enemy_health=enemy.health)

        if enemy.health == 0:
            xp, gold = self.defeat_monster(enemy)
            result.update(defeated=True, experience=xp, gold=gold)
            return result

        engine.scheduler.schedule(
            engine.config.counter_attack_delay_s,
            lambda: self.counter_attack(enemy.id),
            label=f"counter:{enemy.id}",
        )
        return result

    def counter_attack(self, enemy_id: str) -> Optional[int]:
        enemy = self.current_enemy
        # Stale strike: combat ended or moved on before the timer fired
        if enemy is None or enemy.id != enemy_id or not enemy.is_alive:
            return None
        player = self.engine.player
        damage = hit_damage(enemy.attack, player.defense, self.engine.rng.randrange(ROLL_SIDES))
        player.health = max(0, player.health - damage)
        self.engine.emit('player_hit', damage=damage, health=player.health)
        if player.health == 0:
            self.player_defeated()
        return damage

    def defeat_monster(self, monster: Monster):
        engine = self.engine
        player = engine.player
        xp = defeat_experience(monster.level, player.level)
        gold = defeat_gold(monster.level)

        progression.gain_experience(engine, xp)
        player.gold += gold
        for item in monster.loot:
            add_to_inventory(player, item)

        self.clear()
        engine.state.monsters = [m for m in engine.state.monsters if m.id != monster.id]
        logger.info(f"{player.name} defeated {monster.name} (+{xp} xp, +{gold} gold)")
        engine.emit('monster_defeated', monster_id=monster.id, experience=xp, gold=gold)
        return xp, gold

    def player_defeated(self):
        player = self.engine.player
        city = player.first_city
        respawn = city.position if city else player.position
        player.health = player.max_health
        player.position = Coordinate.from_dict(respawn.to_dict())
        self.clear()
        logger.info(f"{player.name} was defeated and respawned")
        self.engine.emit('player_defeated', position=player.position.to_dict())

    def rest(self):
        player = self.engine.player
        player.health = player.max_health
        player.energy = player.max_energy
