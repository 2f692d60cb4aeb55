from unittest.mock import MagicMock, patch

from django.test import TestCase

from game.models import GlobalEconomy
from game.state import Coordinate, ResourceNode
from game.tests.factories import make_engine


def ledger(city):
    return {r.type: r.amount for r in city.resources}


class AnvilTests(TestCase):
    def setUp(self):
        self.engine, _ = make_engine()

    def test_needs_city(self):
        result = self.engine.craft_at_anvil('iron-sword')
        self.assertFalse(result)
        self.assertEqual(result.message, 'You need a city to craft items.')

    def test_unknown_recipe(self):
        self.engine.place_first_flag(0, 0)
        self.assertEqual(self.engine.craft_at_anvil('mithril-blade').message, 'Recipe not found.')

    def test_craft_pays_and_adds_item(self):
        self.engine.place_first_flag(0, 0)
        city = self.engine.player.first_city
        result = self.engine.craft_at_anvil('iron-sword')

        self.assertTrue(result.success)
        self.assertEqual(result.message, 'Forged Iron Sword!')
        item = self.engine.player.find_item(result.extra['item_id'])
        self.assertEqual(item.stats.attack, 5)
        self.assertEqual(item.max_sockets, 1)
        self.assertEqual(item.socketed_gems, [])
        self.assertEqual(ledger(city)['iron'], 35)
        self.assertEqual(ledger(city)['wood'], 190)
        self.assertEqual(ledger(city)['gold'], 475)

        # the gold part goes to the shared bank
        self.assertEqual(GlobalEconomy.current().owner_bank_gold, 25)
        self.assertEqual(self.engine.owner_bank_gold, 25)

    def test_bad_bank_reply_does_not_undo_craft(self):
        engine, _ = make_engine(
            remote_backend='game.services.backends.HttpBackend', remote_api_base='http://realms.test/api/',
        )
        engine.place_first_flag(0, 0)
        reply = MagicMock(status_code=200)
        reply.json.return_value = None
        with patch('game.services.backends.requests.Session') as session_cls:
            session_cls.return_value.request.return_value = reply
            with self.assertLogs('game.services.persistence', level='WARNING'):
                result = engine.craft_at_anvil('iron-sword')

        self.assertTrue(result.success)
        self.assertEqual(ledger(engine.player.first_city)['gold'], 475)
        swords = [i for i in engine.player.inventory if i.name == 'Iron Sword' and i.id != 'sword-1']
        self.assertEqual(len(swords), 1)
        self.assertIsNone(engine.owner_bank_gold)

    def test_not_enough_leaves_ledger_untouched(self):
        self.engine.place_first_flag(0, 0)
        city = self.engine.player.first_city
        city.resource('iron').amount = 5
        before = ledger(city)
        inventory_size = len(self.engine.player.inventory)

        result = self.engine.craft_at_anvil('iron-sword')

        self.assertFalse(result.success)
        self.assertEqual(result.message, 'Not enough iron.')
        self.assertEqual(ledger(city), before)
        self.assertEqual(len(self.engine.player.inventory), inventory_size)

    def test_gem_recipe_is_not_socketable(self):
        self.engine.place_first_flag(0, 0)
        result = self.engine.craft_at_anvil('ruby-gem')
        gem = self.engine.player.find_item(result.extra['item_id'])
        self.assertEqual(gem.type, 'gem')
        self.assertEqual(gem.gem_element, 'fire')
        self.assertIsNone(gem.max_sockets)


class BuildingTests(TestCase):
    def setUp(self):
        self.engine, self.clock = make_engine()
        self.engine.place_first_flag(0, 0)
        self.city = self.engine.player.first_city

    def test_build_and_complete(self):
        events = []
        self.engine.add_listener(lambda event, payload: events.append(event))
        result = self.engine.build_structure('barracks', 0, 0.0005)

        self.assertTrue(result.success)
        self.assertEqual(result.message, 'Started building Barracks.')
        building = next(b for b in self.engine.buildings if b.id == result.extra['building_id'])
        self.assertTrue(building.is_under_construction)
        self.assertEqual(building.construction_time, 45)
        self.assertEqual(ledger(self.city)['wood'], 120)
        self.assertEqual(ledger(self.city)['iron'], 10)
        # the building site becomes a claim of its own
        self.assertEqual(len(self.engine.territories), 2)

        self.clock.advance(44)
        self.engine.tick()
        self.assertTrue(building.is_under_construction)
        self.clock.advance(1)
        self.engine.tick()
        self.assertFalse(building.is_under_construction)
        self.assertIn('building_completed', events)

    def test_illegal_site(self):
        before = ledger(self.city)
        result = self.engine.build_structure('house', 0, 0.05)
        self.assertEqual(result.message, "You can't build here.")
        self.assertEqual(ledger(self.city), before)

    def test_unknown_type(self):
        self.assertEqual(self.engine.build_structure('castle', 0, 0.0005).message, 'Unknown building type.')

    def test_city_level_requirement(self):
        before = ledger(self.city)
        result = self.engine.build_structure('fortress', 0, 0.0005)
        self.assertEqual(result.message, 'Requires city level 3.')
        self.assertEqual(ledger(self.city), before)

    def test_not_enough_resources_leaves_ledger_untouched(self):
        self.city.resource('stone').amount = 10
        before = ledger(self.city)
        buildings = len(self.engine.buildings)

        result = self.engine.build_structure('house', 0, 0.0005)

        self.assertEqual(result.message, 'Not enough stone.')
        self.assertEqual(ledger(self.city), before)
        self.assertEqual(len(self.engine.buildings), buildings)
        self.assertEqual(len(self.engine.scheduler), 0)

    def test_gold_cost_recorded(self):
        self.engine.build_structure('market', 0, 0.0005)
        self.assertEqual(ledger(self.city)['gold'], 400)
        self.assertEqual(GlobalEconomy.current().owner_bank_gold, 100)

    def test_collect_city_resources(self):
        self.assertTrue(self.engine.collect_city_resources('city-1'))
        self.assertEqual(ledger(self.city)['food'], 350)
        self.assertEqual(ledger(self.city)['iron'], 60)
        self.assertFalse(self.engine.collect_city_resources('city-9'))

    def test_collect_respects_cap(self):
        self.city.resource('wood').amount = 995
        self.engine.collect_city_resources('city-1')
        self.assertEqual(ledger(self.city)['wood'], 1000)


class HarvestTests(TestCase):
    def setUp(self):
        self.engine, self.clock = make_engine()
        self.node = ResourceNode(
            id='resource-1', type='wood', position=Coordinate(0, 0.0001),
            amount=500, max_amount=500, regeneration_rate=10,
        )
        self.engine.state.resource_nodes.append(self.node)

    def test_no_harvest_without_city(self):
        self.assertIsNone(self.engine.update_player_gps_position(0, 0)['harvested'])
        self.assertEqual(self.node.amount, 500)

    def test_harvest_and_regenerate(self):
        self.engine.place_first_flag(0, 0)
        result = self.engine.update_player_gps_position(0, 0)

        self.assertEqual(result['harvested'], 'resource-1')
        self.assertEqual(self.node.amount, 480)
        self.assertEqual(self.engine.player.first_city.resource('wood').amount, 220)

        self.clock.advance(5)
        self.engine.tick()
        self.assertEqual(self.node.amount, 490)


class LootTableTests(TestCase):
    def setUp(self):
        self.engine, _ = make_engine()

    def test_every_drop_has_equipment(self):
        for level in (1, 5, 20):
            loot = self.engine.generate_loot(level)
            self.assertTrue(any(i.type in ('weapon', 'armor', 'accessory') for i in loot))

    def test_lowest_roll_gives_epic_weapon_gem_and_resources(self):
        with patch.object(self.engine.rng, 'random', return_value=0.0):
            loot = self.engine.generate_loot(5)

        types = [i.type for i in loot]
        self.assertEqual(types, ['weapon', 'gem', 'resource'])
        weapon = loot[0]
        self.assertEqual(weapon.rarity, 'epic')
        self.assertEqual(weapon.max_sockets, 4)
        self.assertGreaterEqual(weapon.stats.attack, 1)
        self.assertEqual(loot[2].quantity, 10)

    def test_highest_roll_gives_common_gold_and_accessory(self):
        with patch.object(self.engine.rng, 'random', return_value=0.99):
            loot = self.engine.generate_loot(3)

        self.assertEqual([i.type for i in loot], ['resource', 'accessory'])
        self.assertEqual(loot[0].name, 'Gold Coins')
        self.assertEqual(loot[0].quantity, 30)
        self.assertEqual(loot[1].rarity, 'common')
