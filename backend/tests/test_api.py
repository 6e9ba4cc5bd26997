def test_index_and_health(client):
    assert client.get('/').get_json() == {'message': 'Flippin socket server is running'}
    assert client.get('/health').get_json() == {'status': 'healthy'}


def test_rooms_listing(client, connect):
    assert client.get('/api/rooms').get_json() == []
    connect(name='Alice')
    assert client.get('/api/rooms').get_json() == [{'room_id': 'MAIN', 'players': 1, 'game_over': False}]


def test_room_state(client, connect):
    connect(name='Alice')
    res = client.get('/api/rooms/main')
    assert res.status_code == 200
    state = res.get_json()
    assert state['room_id'] == 'MAIN'
    assert len(state['cards']) == 20
    assert state['players'][0]['name'] == 'Alice'


def test_unknown_room(client):
    res = client.get('/api/rooms/NOPE')
    assert res.status_code == 404
    assert res.get_json() == {'error': 'Room not found'}


def test_deck_command(flask_app):
    runner = flask_app.test_cli_runner()
    result = runner.invoke(args=['deck', '--seed', '7'])
    assert result.exit_code == 0
    lines = result.output.strip().splitlines()
    assert len(lines) == 20
    again = runner.invoke(args=['deck', '--seed', '7'])
    assert again.output == result.output


def test_deck_command_rejects_bad_pairs(flask_app):
    result = flask_app.test_cli_runner().invoke(args=['deck', '--pairs', '42'])
    assert result.exit_code != 0
