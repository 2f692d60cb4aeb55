from django.test import TestCase

from game.services.progression import next_level_threshold
from game.tests.factories import make_engine


class ExperienceTests(TestCase):
    def setUp(self):
        self.engine, _ = make_engine()

    def test_threshold_curve(self):
        self.assertEqual(next_level_threshold(1), 110)
        self.assertEqual(next_level_threshold(2), 121)
        self.assertEqual(next_level_threshold(3), 133)

    def test_small_gain_no_level(self):
        self.assertEqual(self.engine.gain_experience(40), 0)
        self.assertEqual(self.engine.player.experience, 40)
        self.assertEqual(self.engine.player.level, 1)

    def test_multi_level_gain_keeps_residual(self):
        events = []
        self.engine.add_listener(lambda event, payload: events.append((event, payload)))
        self.engine.player.health = 10

        self.assertEqual(self.engine.gain_experience(300), 2)

        player = self.engine.player
        self.assertEqual(player.level, 3)
        self.assertEqual(player.experience, 300 - 100 - 121)
        self.assertEqual(player.next_level_exp, 133)
        self.assertEqual(player.max_health, 140)
        self.assertEqual(player.health, 140)
        self.assertEqual(player.max_energy, 70)
        self.assertEqual(player.attack, 14)
        self.assertEqual(player.defense, 7)
        self.assertEqual(events, [('level_up', {'level': 3, 'levels_gained': 2})])


class SkillTests(TestCase):
    def setUp(self):
        self.engine, _ = make_engine()

    def test_learn_once(self):
        self.assertTrue(self.engine.learn_skill('power-strike'))
        self.assertFalse(self.engine.learn_skill('power-strike'))
        self.assertEqual([s.id for s in self.engine.player.skills], ['power-strike'])

    def test_upgrade_until_max(self):
        self.engine.learn_skill('power-strike')
        for _ in range(4):
            self.assertTrue(self.engine.upgrade_skill('power-strike'))
        self.assertFalse(self.engine.upgrade_skill('power-strike'))
        self.assertEqual(self.engine.player.skills[0].level, 5)
        self.assertFalse(self.engine.upgrade_skill('unknown'))
