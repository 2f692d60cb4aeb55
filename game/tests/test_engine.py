from django.contrib.auth.models import AnonymousUser, User
from django.test import TestCase

from game.engine import AuthContext
from game.tests.factories import make_engine


class AuthContextTests(TestCase):
    def test_from_user(self):
        user = User.objects.create_user(username='carol', password='x', is_staff=True)
        auth = AuthContext.from_user(user)
        self.assertEqual(auth.user_id, str(user.pk))
        self.assertEqual(auth.username, 'carol')
        self.assertTrue(auth.is_admin)
        self.assertTrue(auth.authenticated)

    def test_anonymous(self):
        self.assertFalse(AuthContext.from_user(AnonymousUser()).authenticated)
        self.assertFalse(AuthContext.from_user(None).authenticated)


class ListenerTests(TestCase):
    def setUp(self):
        self.engine, _ = make_engine()

    def test_unsubscribe(self):
        events = []
        unsubscribe = self.engine.add_listener(lambda event, payload: events.append(event))
        self.engine.emit('ping')
        unsubscribe()
        self.engine.emit('ping')
        self.assertEqual(events, ['ping'])

    def test_broken_listener_does_not_stop_others(self):
        events = []

        def broken(event, payload):
            raise RuntimeError('boom')

        self.engine.add_listener(broken)
        self.engine.add_listener(lambda event, payload: events.append(payload))
        with self.assertLogs('game.engine', level='ERROR'):
            self.engine.emit('ping', value=1)
        self.assertEqual(events, [{'value': 1}])


class MovementTests(TestCase):
    def setUp(self):
        self.engine, _ = make_engine()

    def test_gps_update_spends_energy_per_100m(self):
        self.engine.initialize_player_position(0, 0)
        result = self.engine.update_player_gps_position(0, 0.0027)
        self.assertEqual(result['energy_cost'], 3)
        self.assertAlmostEqual(result['distance'], 300.2, delta=0.5)
        self.assertEqual(self.engine.player.energy, 47)
        self.assertEqual(self.engine.player.position.y, 0.0027)

    def test_energy_never_negative(self):
        self.engine.initialize_player_position(0, 0)
        self.engine.update_player_gps_position(1, 0)
        self.assertEqual(self.engine.player.energy, 0)

    def test_teleport_to_flag(self):
        self.engine.place_first_flag(0, 0)
        self.engine.place_additional_flag(0, 0.0017)
        target = self.engine.territories[1]
        self.assertTrue(self.engine.teleport_to_flag(target.id))
        self.assertEqual(self.engine.player.position.y, 0.0017)
        self.assertFalse(self.engine.teleport_to_flag('territory-missing'))

    def test_movement_target(self):
        self.engine.set_movement_target(1.5, 2.5)
        self.assertEqual(self.engine.player.movement_flag.x, 1.5)
        self.engine.set_movement_target(None, None)
        self.assertIsNone(self.engine.player.movement_flag)
