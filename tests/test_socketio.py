def _named(received, name):
    return [pkt['args'][0] if pkt['args'] else None for pkt in received if pkt['name'] == name]


def _open_room(controller):
    controller.emit('register_role', {'role': 'controller'}, namespace='/ws')
    controller.emit('open_room', namespace='/ws')
    opened = _named(controller.get_received('/ws'), 'room_opened')
    assert len(opened) == 1
    return opened[0]['code']


def test_socket_connect_receives_state(sio_client):
    # Ensure we are connected to /ws
    if not sio_client.is_connected('/ws'):
        sio_client.connect(namespace='/ws')
    assert sio_client.is_connected('/ws')

    received = sio_client.get_received('/ws')
    names = [pkt['name'] for pkt in received]
    assert 'connected' in names
    state = _named(received, 'state_update')[0]
    assert state['players'] == [{'name': 'A', 'score': 0}, {'name': 'B', 'score': 0}]
    assert _named(received, 'room_status')[0] == {'slots': [False, False]}


def test_room_join_fills_slots_in_order(sio_client, make_sio_client):
    code = _open_room(sio_client)
    display = make_sio_client()
    display.emit('register_role', {'role': 'display'}, namespace='/ws')
    assert _named(display.get_received('/ws'), 'room_code') == [{'code': code}]

    alice, bob, carl = make_sio_client(), make_sio_client(), make_sio_client()
    alice.emit('join_room', {'code': code, 'name': 'Alice'}, namespace='/ws')
    bob.emit('join_room', {'code': code, 'name': 'Bob'}, namespace='/ws')
    carl.emit('join_room', {'code': code, 'name': 'Carl'}, namespace='/ws')

    assert _named(alice.get_received('/ws'), 'buzzer_registered') == [{'slot': 0, 'name': 'Alice'}]
    assert _named(bob.get_received('/ws'), 'buzzer_registered') == [{'slot': 1, 'name': 'Bob'}]
    carl_received = carl.get_received('/ws')
    assert _named(carl_received, 'buzzer_registered') == []
    assert _named(carl_received, 'error')[-1]['code'] == 'room_full'

    display_received = display.get_received('/ws')
    assert _named(display_received, 'room_status')[-1] == {'slots': [True, True]}
    players = _named(display_received, 'state_update')[-1]['players']
    assert [p['name'] for p in players] == ['Alice', 'Bob']


def test_wrong_code_is_reported_only_to_sender(sio_client, make_sio_client):
    code = _open_room(sio_client)
    wrong = '1000' if code != '1000' else '1001'
    player = make_sio_client()
    player.get_received('/ws')
    player.emit('join_room', {'code': wrong, 'name': 'Mallory'}, namespace='/ws')
    assert _named(player.get_received('/ws'), 'error') == [{'code': 'wrong_code', 'message': 'Room code is incorrect'}]
    assert _named(sio_client.get_received('/ws'), 'error') == []


def test_buzzer_race_has_single_winner(flask_app, sio_client, make_sio_client):
    code = _open_room(sio_client)
    alice, bob = make_sio_client(), make_sio_client()
    alice.emit('join_room', {'code': code, 'name': 'Alice'}, namespace='/ws')
    bob.emit('join_room', {'code': code, 'name': 'Bob'}, namespace='/ws')

    flask_app.extensions['quizbuzz'].import_batch('set', 'sheet', [{'prompt': 'Q1', 'answer': 'A1'}])
    sio_client.emit('draw_next', namespace='/ws')
    sio_client.get_received('/ws')

    alice.emit('signal', {'slot': 0}, namespace='/ws')
    bob.emit('signal', {'slot': 1}, namespace='/ws')
    alice.emit('signal', {'slot': 0}, namespace='/ws')

    received = sio_client.get_received('/ws')
    assert _named(received, 'buzzer_winner') == [{'slot': 0, 'name': 'Alice'}]
    assert _named(received, 'state_update')[-1]['buzzer'] == {'armed': False, 'winner': 0}


def test_bound_buzzer_signals_for_its_own_slot(flask_app, sio_client, make_sio_client):
    code = _open_room(sio_client)
    alice, bob = make_sio_client(), make_sio_client()
    alice.emit('join_room', {'code': code, 'name': 'Alice'}, namespace='/ws')
    bob.emit('join_room', {'code': code, 'name': 'Bob'}, namespace='/ws')
    flask_app.extensions['quizbuzz'].import_batch('set', 'sheet', [{'prompt': 'Q1', 'answer': 'A1'}])
    sio_client.emit('draw_next', namespace='/ws')
    sio_client.get_received('/ws')

    # Bob claims slot 0 but is bound to slot 1
    bob.emit('signal', {'slot': 0}, namespace='/ws')
    assert _named(sio_client.get_received('/ws'), 'buzzer_winner') == [{'slot': 1, 'name': 'Bob'}]


def test_new_room_kicks_players(sio_client, make_sio_client):
    code = _open_room(sio_client)
    alice = make_sio_client()
    alice.emit('join_room', {'code': code, 'name': 'Alice'}, namespace='/ws')
    alice.get_received('/ws')

    sio_client.emit('open_room', namespace='/ws')
    kicked = _named(alice.get_received('/ws'), 'kicked')
    assert len(kicked) == 1
    assert kicked[0]['reason'] == 'A new room has been opened'


def test_disconnect_frees_slot(sio_client, make_sio_client):
    code = _open_room(sio_client)
    alice = make_sio_client()
    alice.emit('join_room', {'code': code, 'name': 'Alice'}, namespace='/ws')
    sio_client.get_received('/ws')

    alice.disconnect(namespace='/ws')
    received = sio_client.get_received('/ws')
    assert _named(received, 'room_status')[-1] == {'slots': [False, False]}
    # Vacating the slot does not remove the player
    assert _named(received, 'state_update')[-1]['players'][0]['name'] == 'Alice'


def test_buzzer_role_never_receives_room_code(sio_client, make_sio_client):
    _open_room(sio_client)
    player = make_sio_client()
    player.emit('register_role', {'role': 'buzzer'}, namespace='/ws')
    received = player.get_received('/ws')
    assert _named(received, 'role_registered') == [{'role': 'buzzer'}]
    assert _named(received, 'room_code') == []


def test_host_controls_broadcast_to_everyone(sio_client, make_sio_client):
    display = make_sio_client()
    display.get_received('/ws')

    sio_client.emit('rename_player', {'slot': 0, 'name': 'Ann'}, namespace='/ws')
    sio_client.emit('adjust_score', {'slot': 0, 'delta': -2}, namespace='/ws')
    sio_client.emit('toggle_answer', namespace='/ws')
    sio_client.emit('start_countdown', {'seconds': 10}, namespace='/ws')

    received = display.get_received('/ws')
    last = _named(received, 'state_update')[-1]
    assert last['players'][0] == {'name': 'Ann', 'score': -2}
    assert last['answer_visible'] is True
    assert _named(received, 'score_changed') == [{'slot': 0, 'delta': -2}]
    assert _named(received, 'countdown') == [{'seconds': 10}]


def test_bad_payloads_are_rejected(sio_client):
    sio_client.get_received('/ws')
    sio_client.emit('adjust_score', {'slot': 5, 'delta': 1}, namespace='/ws')
    sio_client.emit('adjust_score', {'slot': 0, 'delta': 'lots'}, namespace='/ws')
    sio_client.emit('delete_batch', {'batch_id': 42}, namespace='/ws')
    sio_client.emit('register_role', {'role': 'spectator'}, namespace='/ws')
    received = sio_client.get_received('/ws')
    codes = [e['code'] for e in _named(received, 'error')]
    assert codes == ['invalid_slot', 'invalid_payload', 'unknown_batch', 'invalid_payload']
    assert _named(received, 'state_update') == []


def test_full_reset_closes_room(sio_client, make_sio_client):
    code = _open_room(sio_client)
    alice = make_sio_client()
    alice.emit('join_room', {'code': code, 'name': 'Alice'}, namespace='/ws')
    alice.get_received('/ws')
    sio_client.get_received('/ws')

    sio_client.emit('full_reset', namespace='/ws')
    assert _named(alice.get_received('/ws'), 'kicked')[0]['reason'] == 'The game has been fully reset'
    received = sio_client.get_received('/ws')
    assert _named(received, 'room_code') == [{'code': None}]
    assert _named(received, 'state_update')[-1]['room_open'] is False

    late = make_sio_client()
    late.emit('join_room', {'code': code, 'name': 'Late'}, namespace='/ws')
    assert _named(late.get_received('/ws'), 'error')[-1]['code'] == 'room_not_open'


def test_ping(sio_client):
    sio_client.emit('ping', {'n': 1}, namespace='/ws')
    assert _named(sio_client.get_received('/ws'), 'pong') == [{'n': 1}]


def test_fractional_numbers_are_rejected_not_truncated(sio_client):
    sio_client.get_received('/ws')
    sio_client.emit('adjust_score', {'slot': 0, 'delta': 2.9}, namespace='/ws')
    sio_client.emit('adjust_score', {'slot': 1.7, 'delta': 1}, namespace='/ws')
    received = sio_client.get_received('/ws')
    assert [e['code'] for e in _named(received, 'error')] == ['invalid_payload', 'invalid_payload']
    assert _named(received, 'state_update') == []

    # Integer strings are still accepted
    sio_client.emit('adjust_score', {'slot': '0', 'delta': '-3'}, namespace='/ws')
    last = _named(sio_client.get_received('/ws'), 'state_update')[-1]
    assert last['players'][0] == {'name': 'A', 'score': -3}


def test_open_room_resets_the_openers_name_inputs(sio_client):
    sio_client.emit('rename_player', {'slot': 0, 'name': 'Ann'}, namespace='/ws')
    sio_client.get_received('/ws')
    sio_client.emit('open_room', namespace='/ws')
    received = sio_client.get_received('/ws')
    assert _named(received, 'reset_inputs') == [{'names': ['A', 'B']}]
    assert _named(received, 'state_update')[-1]['players'][0]['name'] == 'A'
