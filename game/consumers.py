"""
WebSocket adapter: one GameEngine per connection.
The client streams GPS fixes and gestures; every reply carries the action
result and a fresh state snapshot, and engine events are pushed as they occur.
"""
import asyncio
import json
import logging

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncWebsocketConsumer

from .engine import AuthContext, GameEngine
from .results import Outcome

logger = logging.getLogger(__name__)

TICK_INTERVAL_S = 0.25


def _coords(data):
    return float(data['lat']), float(data['lon'])


class GameConsumer(AsyncWebsocketConsumer):

    async def connect(self):
        self.auth = AuthContext.from_user(self.scope.get('user'))
        self.events = []
        self.engine, state = await database_sync_to_async(self._build_engine)()
        await self.accept()
        await self.send_json({'type': 'state', 'source': self.loaded_from, 'state': state})
        self.ticker = asyncio.ensure_future(self._tick_loop())
        logger.info(f"Game socket opened for {self.auth.username or 'anonymous'}")

    def _build_engine(self):
        engine = GameEngine(auth=self.auth)
        engine.add_listener(lambda event, payload: self.events.append((event, payload)))
        self.loaded_from = engine.load_game()
        self.engine = engine
        return engine, self._state()

    async def disconnect(self, close_code):
        ticker = getattr(self, 'ticker', None)
        if ticker:
            ticker.cancel()
        if getattr(self, 'engine', None) is not None:
            await database_sync_to_async(self.engine.save_game_local)()
        logger.info(f"Game socket closed ({close_code})")

    async def _tick_loop(self):
        while True:
            await asyncio.sleep(TICK_INTERVAL_S)
            fired = await database_sync_to_async(self.engine.tick)()
            if fired or self.events:
                await self.flush_events()

    async def receive(self, text_data=None, bytes_data=None):
        try:
            message = json.loads(text_data or '{}')
        except json.JSONDecodeError:
            await self.send_error('Invalid JSON')
            return
        if not isinstance(message, dict):
            await self.send_error('Message must be a JSON object')
            return
        message_type = message.get('type')
        handler = self.HANDLERS.get(message_type)
        if handler is None:
            await self.send_error(f"Unknown message type: {message_type}")
            return
        data = message.get('data') or {}
        try:
            result, state = await database_sync_to_async(self._run)(handler, data)
        except (KeyError, TypeError, ValueError) as e:
            await self.send_error(f"Bad {message_type} payload: {e}")
            return
        await self.send_json({'type': message_type, 'result': result, 'state': state})
        await self.flush_events()

    def _run(self, handler, data):
        self.engine.tick()
        result = handler(self, data)
        if isinstance(result, Outcome):
            result = result.to_dict()
        return result, self._state()

    # --- handlers (run in a worker thread) --------------------------------

    def on_init_position(self, data):
        self.engine.initialize_player_position(*_coords(data))
        return {'success': True}

    def on_gps_update(self, data):
        return self.engine.update_player_gps_position(*_coords(data))

    def on_place_first_flag(self, data):
        return {'success': self.engine.place_first_flag(*_coords(data))}

    def on_place_flag(self, data):
        return {'success': self.engine.place_additional_flag(*_coords(data))}

    def on_build(self, data):
        lat, lon = _coords(data)
        return self.engine.build_structure(data['type'], lat, lon)

    def on_teleport(self, data):
        return {'success': self.engine.teleport_to_flag(data['territory_id'])}

    def on_attack(self, data):
        return self.engine.attack()

    def on_craft(self, data):
        return self.engine.craft_at_anvil(data['recipe_id'])

    def on_socket_gem(self, data):
        return self.engine.socket_gem(data['target_id'], data['gem_id'])

    def on_equip(self, data):
        return self.engine.equip_item(data['item_id'])

    def on_use_item(self, data):
        return self.engine.use_item(data['item_id'])

    def on_move_target(self, data):
        if data.get('lat') is None or data.get('lon') is None:
            self.engine.set_movement_target(None, None)
            return {'success': True, 'can_move': None}
        lat, lon = _coords(data)
        self.engine.set_movement_target(lat, lon)
        return {'success': True, 'can_move': self.engine.can_move_to_location(lat, lon)}

    def on_save(self, data):
        return self.engine.manual_save_game()

    def on_state(self, data):
        return {'success': True}

    HANDLERS = {
        'init_position': on_init_position,
        'gps_update': on_gps_update,
        'place_first_flag': on_place_first_flag,
        'place_flag': on_place_flag,
        'build': on_build,
        'teleport': on_teleport,
        'attack': on_attack,
        'craft': on_craft,
        'socket_gem': on_socket_gem,
        'equip': on_equip,
        'use_item': on_use_item,
        'move_target': on_move_target,
        'save': on_save,
        'state': on_state,
    }

    # --- output ------------------------------------------------------------

    def _state(self):
        data = self.engine.state.to_dict()
        data['in_combat'] = self.engine.in_combat
        data['current_enemy'] = self.engine.current_enemy.to_dict() if self.engine.current_enemy else None
        data['loot_items'] = [
            dict(l.to_inventory_item().to_dict(), position=l.position.to_dict()) for l in self.engine.loot_items
        ]
        return data

    async def flush_events(self):
        pending, self.events = self.events, []
        for event, payload in pending:
            await self.send_json({'type': 'event', 'event': event, 'data': payload})

    async def send_json(self, content):
        await self.send(text_data=json.dumps(content))

    async def send_error(self, message):
        await self.send_json({'type': 'error', 'message': message})
