import random

import click
from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO

from config import Config

socketio = SocketIO(async_mode=None)


def _allowed_origins(config):
    origins = config.get('CORS_ORIGINS') or ['*']
    if isinstance(origins, str):
        origins = [origins]
    return '*' if '*' in origins else list(origins)


def create_app(config_class=Config, scheduler=None):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    allowed_origins = _allowed_origins(flask_app.config)
    CORS(flask_app, origins=allowed_origins)
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # Rooms live in process memory; one registry per app
    from flippin.services.games.broadcast import SocketIOBroadcaster
    from flippin.services.games.registry import RoomRegistry
    from flippin.services.games.room import GameRules
    from flippin.services.games.scheduler import BackgroundScheduler

    namespace = flask_app.config.get('SOCKETIO_NAMESPACE', '/ws')
    rules = GameRules.from_config(flask_app.config)
    flask_app.extensions['room_registry'] = RoomRegistry(
        rules,
        scheduler or BackgroundScheduler(socketio),
        SocketIOBroadcaster(socketio, namespace),
        default_room_id=flask_app.config.get('DEFAULT_ROOM_ID', 'main'),
        code_length=int(flask_app.config.get('ROOM_CODE_LENGTH', 6)),
    )

    from flippin.routes import main
    flask_app.register_blueprint(main)

    from flippin.api.rooms import rooms
    flask_app.register_blueprint(rooms, url_prefix='/api/rooms')

    from flippin.socketio_events import register_socketio_handlers
    register_socketio_handlers(namespace)

    @click.command('deck')
    @click.option('--pairs', type=int, default=None, help='Number of pairs to deal.')
    @click.option('--seed', type=int, default=None, help='Seed for a reproducible shuffle.')
    def deck_command(pairs, seed):
        """Prints a freshly shuffled deck."""
        from flippin.services.games.deck import build_deck
        rng = random.Random(seed) if seed is not None else None
        try:
            cards = build_deck(pairs or rules.deck_pairs, rng=rng)
        except ValueError as exc:
            raise click.BadParameter(str(exc), param_hint='--pairs')
        for idx, card in enumerate(cards):
            click.echo(f"{idx:2d}  pair={card.pair_id}  {card.label}")

    flask_app.cli.add_command(deck_command)

    return flask_app
