from app.core.session_state import EntryStep, SessionView


async def test_host_then_player_then_capacity_drop(
    connect_client, lobby_store, settle, test_room
):
    host = await connect_client()
    assert host.state.view == SessionView.HOST_LOGIN

    assert await host.controller.host_login("1234") is True
    room = await lobby_store.get_room()
    assert room.host_joined is True
    assert room.is_active is True
    assert host.state.view == SessionView.HOST_DASHBOARD

    alice = await connect_client()
    assert alice.state.is_entry_step(EntryStep.CODE)

    assert await alice.controller.submit_access_code("0000") is True
    assert alice.state.is_entry_step(EntryStep.NAME)

    assert await alice.controller.submit_name("Alice") is True
    assert alice.state.view == SessionView.LOBBY
    players = await lobby_store.get_players(test_room.id)
    assert [p.name for p in players] == ["Alice"]

    await settle()
    assert host.state.player_count == 1

    assert await host.controller.set_max_players(1) is True

    late = await connect_client()
    assert late.state.view == SessionView.FULL
    assert await late.controller.submit_access_code("0000") is False
    assert late.state.view == SessionView.FULL

    await settle()
    assert alice.state.view == SessionView.LOBBY
    assert host.state.view == SessionView.HOST_DASHBOARD


async def test_waiting_player_moves_to_full_when_capacity_drops(
    connect_client, settle, test_room
):
    host = await connect_client()
    await host.controller.host_login("1234")

    alice = await connect_client()
    bob = await connect_client()
    await alice.controller.submit_access_code("0000")
    await alice.controller.submit_name("Alice")

    assert await bob.controller.submit_access_code("0000") is True
    assert bob.state.is_entry_step(EntryStep.NAME)

    await host.controller.set_max_players(1)
    await settle()
    assert bob.state.view == SessionView.FULL

    await host.controller.set_max_players(4)
    await settle()
    assert bob.state.is_entry_step(EntryStep.CODE)


async def test_code_step_at_capacity_routes_to_full(
    connect_client, lobby_store, settle, test_room
):
    host = await connect_client()
    await host.controller.host_login("1234")
    await host.controller.set_max_players(2)
    await settle()

    entrants = [await connect_client() for _ in range(3)]
    for name, client in zip(["A", "B"], entrants[:2], strict=True):
        await client.controller.submit_access_code("0000")
        await client.controller.submit_name(name)
    await settle()

    assert [c.state.view for c in entrants[:2]] == [SessionView.LOBBY] * 2
    assert entrants[2].state.view == SessionView.FULL
    assert len(await lobby_store.get_players(test_room.id)) == 2


async def test_logout_does_not_kick_lobby_clients(
    connect_client, lobby_store, settle, test_room
):
    host = await connect_client()
    await host.controller.host_login("1234")

    alice = await connect_client()
    await alice.controller.submit_access_code("0000")
    await alice.controller.submit_name("Alice")

    waiting = await connect_client()
    assert waiting.state.is_entry_step(EntryStep.CODE)

    assert await host.controller.logout(confirmed=True) is True
    await settle()

    room = await lobby_store.get_room()
    assert room.host_joined is False
    assert room.is_active is False
    assert await lobby_store.get_players(test_room.id) == []

    assert host.state.view == SessionView.HOST_LOGIN
    assert alice.state.view == SessionView.LOBBY
    assert alice.state.room.host_joined is False
    assert waiting.state.view == SessionView.HOST_LOGIN

    fresh = await connect_client()
    assert fresh.state.view == SessionView.HOST_LOGIN


async def test_second_tab_cannot_take_over_host(connect_client, settle, test_room):
    first = await connect_client()
    second = await connect_client()

    await first.controller.host_login("1234")
    await settle()

    assert second.state.view == SessionView.PLAYER_ENTRY
    assert await second.controller.host_login("1234") is False


async def test_regenerated_code_invalidates_pending_name_step(
    connect_client, settle, test_room
):
    host = await connect_client()
    await host.controller.host_login("1234")

    player = await connect_client()
    await player.controller.submit_access_code("0000")
    assert player.state.is_entry_step(EntryStep.NAME)

    new_code = await host.controller.regenerate_access_code()
    await settle()

    if new_code == "0000":
        assert player.state.is_entry_step(EntryStep.NAME)
    else:
        assert player.state.is_entry_step(EntryStep.CODE)
        assert await player.controller.submit_access_code("0000") is False
        accepted = await player.controller.submit_access_code(new_code.lower())
        assert accepted is True


async def test_host_login_never_shows_player_entry(connect_client, settle, test_room):
    host = await connect_client()

    await host.controller.host_login("1234")
    await settle()

    views = [state.view for state in host.states]
    assert views == [
        SessionView.HOST_LOGIN,
        SessionView.HOST_DASHBOARD,
        SessionView.HOST_DASHBOARD,
    ]
    assert host.state.room.host_joined is True
