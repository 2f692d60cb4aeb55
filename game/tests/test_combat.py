from unittest.mock import patch

from django.test import TestCase

from game.services.combat import defeat_experience, defeat_gold, hit_damage
from game.state import InventoryItem
from game.tests.factories import make_engine, make_monster


class CombatFormulaTests(TestCase):
    def test_hit_damage_floor(self):
        self.assertEqual(hit_damage(10, 4, 0), 6)
        self.assertEqual(hit_damage(3, 20, 4), 1)

    def test_defeat_rewards(self):
        self.assertEqual(defeat_experience(1, 1), 125)
        self.assertEqual(defeat_experience(1, 30), 25)
        self.assertEqual(defeat_gold(4), 40)


class CombatFlowTests(TestCase):
    def setUp(self):
        self.engine, self.clock = make_engine()
        self.monster = make_monster(0, 0.0001, health=40, attack=6, defense=4)
        self.engine.state.monsters.append(self.monster)
        self.events = []
        self.engine.add_listener(lambda event, payload: self.events.append((event, payload)))

    def test_gps_update_starts_encounter(self):
        result = self.engine.update_player_gps_position(0, 0)
        self.assertEqual(result['encounter'], self.monster.id)
        self.assertTrue(self.engine.in_combat)
        self.assertIs(self.engine.current_enemy, self.monster)
        self.assertEqual(self.events[0][0], 'combat_started')

        # no second encounter while fighting
        other = make_monster(0, 0.00005)
        self.engine.state.monsters.append(other)
        self.assertIsNone(self.engine.update_player_gps_position(0, 0)['encounter'])

    def test_attack_without_enemy(self):
        result = self.engine.attack()
        self.assertFalse(result['success'])
        self.assertEqual(result['damage'], 0)

    def test_attack_and_counter_attack(self):
        self.engine.start_combat(self.monster.id)
        with patch.object(self.engine.rng, 'randrange', return_value=0):
            result = self.engine.attack()
            self.assertTrue(result['success'])
            self.assertEqual(result['damage'], 6)
            self.assertEqual(result['enemy_health'], 34)
            self.assertFalse(result['defeated'])

            # the enemy strikes back only once the delay has passed
            self.assertEqual(self.engine.tick(), 0)
            self.clock.advance(0.5)
            self.assertEqual(self.engine.tick(), 1)

        self.assertEqual(self.engine.player.health, 99)
        self.assertIn(('player_hit', {'damage': 1, 'health': 99}), self.events)

    def test_defeat_awards_experience_gold_and_loot(self):
        self.monster.health = 5
        self.monster.loot = [InventoryItem(id='loot-axe', name='Axe', type='weapon')]
        self.engine.start_combat(self.monster.id)
        with patch.object(self.engine.rng, 'randrange', return_value=0):
            result = self.engine.attack()

        self.assertTrue(result['defeated'])
        self.assertEqual(result['experience'], 125)
        self.assertEqual(result['gold'], 10)

        player = self.engine.player
        self.assertEqual(player.level, 2)
        self.assertEqual(player.experience, 25)
        self.assertEqual(player.gold, 510)
        self.assertIsNotNone(player.find_item('loot-axe'))
        self.assertNotIn(self.monster, self.engine.monsters)
        self.assertFalse(self.engine.in_combat)
        self.assertIn('monster_defeated', [e for e, _ in self.events])

    def test_counter_attack_after_victory_is_dropped(self):
        self.monster.health = 12
        self.engine.start_combat(self.monster.id)
        with patch.object(self.engine.rng, 'randrange', return_value=0):
            self.engine.attack()
            self.engine.attack()
        self.assertFalse(self.engine.in_combat)

        self.clock.advance(1)
        self.assertEqual(self.engine.tick(), 1)
        self.assertEqual(self.engine.player.health, self.engine.player.max_health)
        self.assertNotIn('player_hit', [e for e, _ in self.events])

    def test_counter_attack_against_new_enemy_is_dropped(self):
        self.engine.start_combat(self.monster.id)
        self.engine.attack()
        self.engine.combat.clear()

        other = make_monster(0, 0.0002)
        self.engine.state.monsters.append(other)
        self.engine.start_combat(other.id)
        self.clock.advance(1)
        self.engine.tick()
        self.assertEqual(self.engine.player.health, 100)

    def test_player_defeat_respawns_at_city(self):
        self.engine.place_first_flag(0, 0)
        self.engine.initialize_player_position(0, 0.0001)
        self.engine.player.health = 1
        self.monster.attack = 50
        self.engine.start_combat(self.monster.id)
        self.engine.attack()
        self.clock.advance(0.5)
        self.engine.tick()

        player = self.engine.player
        self.assertEqual(player.health, player.max_health)
        self.assertEqual((player.position.x, player.position.y), (0, 0))
        self.assertFalse(self.engine.in_combat)
        self.assertIn('player_defeated', [e for e, _ in self.events])

    def test_rest_restores_health_and_energy(self):
        self.engine.player.health = 10
        self.engine.player.energy = 3
        self.engine.rest()
        self.assertEqual(self.engine.player.health, 100)
        self.assertEqual(self.engine.player.energy, 50)
