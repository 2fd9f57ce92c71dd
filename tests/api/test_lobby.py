from fastapi import status

from app.core.error import DomainErrorCode, StoreOperationError


async def test_read_lobby(client, mock_room):
    client_instance, mocks = client
    mocks["repositories"]["room"].get_singleton.return_value = mock_room
    mocks["repositories"]["player"].count.return_value = 3

    response = await client_instance.get("/api/v1/lobby")

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["is_active"] is True
    assert data["max_players"] == 4
    assert data["host_joined"] is True
    assert data["player_count"] == 3
    assert data["recommended_max_players"] == [2, 4, 8, 16, 32]
    assert "access_code" not in data
    mocks["repositories"]["player"].count.assert_awaited_once_with(
        room_id=mock_room.id
    )


async def test_read_lobby_not_provisioned(client):
    client_instance, mocks = client
    mocks["repositories"]["room"].get_singleton.return_value = None

    response = await client_instance.get("/api/v1/lobby")

    assert response.status_code == status.HTTP_404_NOT_FOUND
    data = response.json()
    assert data["code"] == DomainErrorCode.ROOM_NOT_PROVISIONED.value
    assert data["detail"] == "Room record has not been provisioned"
    mocks["repositories"]["player"].count.assert_not_awaited()


async def test_read_lobby_store_failure(client, mock_room):
    client_instance, mocks = client
    mocks["repositories"]["room"].get_singleton.return_value = mock_room
    mocks["repositories"]["player"].count.side_effect = StoreOperationError(
        message="Lobby store operation failed",
        details={
            "operation": "count",
            "error": "connection refused",
        },
    )

    response = await client_instance.get("/api/v1/lobby")

    assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
    data = response.json()
    assert data["code"] == DomainErrorCode.STORE_OPERATION_FAILED.value
    assert data["error_details"]["operation"] == "count"
