from django.conf import settings
from django.test import SimpleTestCase, override_settings
from django.utils import timezone

from game.catalogs import Catalogs
from game.conf import GameConfig
from game.results import Outcome
from game.scheduler import EventQueue, ManualClock
from game.state import Coordinate, GameState, ItemStats, LootItem, SnapshotError, default_player


class SnapshotTests(SimpleTestCase):
    def test_rejects_non_object(self):
        with self.assertRaises(SnapshotError) as ctx:
            GameState.from_dict(['player'])
        self.assertEqual(ctx.exception.code, 'not_an_object')

    def test_rejects_missing_player(self):
        with self.assertRaises(SnapshotError) as ctx:
            GameState.from_dict({'user_id': '1'})
        self.assertEqual(ctx.exception.code, 'malformed')

    def test_rejects_bad_numbers(self):
        data = GameState(user_id='1', player=default_player()).to_dict()
        data['player']['level'] = 'high'
        with self.assertRaises(SnapshotError):
            GameState.from_dict(data)

    def test_missing_realm_defaults_to_real_world(self):
        self.assertEqual(Coordinate.from_dict({'x': 1, 'y': 2}).realm, 'real-world')

    def test_loot_item_becomes_plain_item(self):
        loot = LootItem(
            id='loot-1', name='Iron Boots', type='armor', stats=ItemStats(defense=3),
            position=Coordinate(1, 2), spawn_time=timezone.now(), level=3,
        )
        item = loot.to_inventory_item()
        self.assertNotIsInstance(item, LootItem)
        self.assertEqual(item.stats.defense, 3)
        self.assertEqual(item.id, 'loot-1')


class EventQueueTests(SimpleTestCase):
    def test_fires_in_time_then_insertion_order(self):
        clock = ManualClock()
        queue = EventQueue(clock)
        fired = []
        queue.schedule(2, lambda: fired.append('late'))
        queue.schedule(1, lambda: fired.append('first'))
        queue.schedule(1, lambda: fired.append('second'))

        self.assertEqual(queue.run_due(), 0)
        clock.advance(1)
        self.assertEqual(queue.due(), 2)
        self.assertEqual(queue.run_due(), 2)
        clock.advance(5)
        queue.run_due()
        self.assertEqual(fired, ['first', 'second', 'late'])
        self.assertEqual(len(queue), 0)

    def test_clear(self):
        queue = EventQueue(ManualClock())
        queue.schedule(0, lambda: None)
        queue.clear()
        self.assertEqual(queue.run_due(), 0)


class ConfigTests(SimpleTestCase):
    def test_reads_game_settings(self):
        game_settings = dict(settings.GAME_SETTINGS, TERRITORY_RADIUS_M=350, UNKNOWN_KEY=1)
        with override_settings(GAME_SETTINGS=game_settings):
            config = GameConfig.from_settings()
        self.assertEqual(config.territory_radius_m, 350)
        self.assertEqual(config.with_overrides(harvest_amount=5).harvest_amount, 5)

    def test_catalog_override(self):
        monsters = [{'name': 'Slime', 'level': 1, 'attack': 1, 'defense': 0}]
        with override_settings(GAME_CATALOGS={'monsters': monsters}):
            catalogs = Catalogs.from_settings()
        self.assertEqual(catalogs.monsters, monsters)
        self.assertIn('house', catalogs.buildings)
        self.assertEqual(catalogs.rarity_for_roll(0.05), 'rare')
        self.assertEqual(catalogs.sockets_for('legendary'), 0)


class OutcomeTests(SimpleTestCase):
    def test_truthiness_and_dict(self):
        self.assertFalse(Outcome.fail('Nope.'))
        ok = Outcome.ok('Done.', item_id='x')
        self.assertTrue(ok)
        self.assertEqual(ok.to_dict(), {'success': True, 'message': 'Done.', 'item_id': 'x'})
