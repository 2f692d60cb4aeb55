"""
Experience, level-ups and skills.
"""
import logging
import math

from ..state import ItemStats, Player, PlayerSkill

logger = logging.getLogger(__name__)

HEALTH_PER_LEVEL = 20
ENERGY_PER_LEVEL = 10
ATTACK_PER_LEVEL = 2
DEFENSE_PER_LEVEL = 1


def next_level_threshold(level: int) -> int:
    return math.floor(100 * math.pow(1.1, level))


def level_up(player: Player) -> None:
    player.level += 1
    player.max_health += HEALTH_PER_LEVEL
    player.health = player.max_health
    player.max_energy += ENERGY_PER_LEVEL
    player.energy = player.max_energy
    player.attack += ATTACK_PER_LEVEL
    player.defense += DEFENSE_PER_LEVEL
    player.next_level_exp = next_level_threshold(player.level)


def gain_experience(engine, amount: int) -> int:
    """Add experience and apply every level-up it pays for. Returns levels gained."""
    player = engine.player
    player.experience += amount
    gained = 0
    while player.experience >= player.next_level_exp:
        player.experience -= player.next_level_exp
        level_up(player)
        gained += 1
    if gained:
        logger.info(f"{player.name} reached level {player.level} (+{gained})")
        engine.emit('level_up', level=player.level, levels_gained=gained)
    return gained


def learn_skill(engine, skill_id: str) -> bool:
    player = engine.player
    if any(s.id == skill_id for s in player.skills):
        return False
    player.skills.append(PlayerSkill(
        id=skill_id,
        name=f"Skill {skill_id}",
        description='A learned skill',
        icon='⭐',
        level=1,
        max_level=5,
        type='passive',
        stats=ItemStats(attack=5),
    ))
    return True


def upgrade_skill(engine, skill_id: str) -> bool:
    skill = next((s for s in engine.player.skills if s.id == skill_id), None)
    if skill is None or skill.level >= skill.max_level:
        return False
    skill.level += 1
    return True
