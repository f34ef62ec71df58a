import pytest
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials

from salon.auth import jwt_handler
from salon.auth.dependencies import get_current_user
from salon.routes.auth_routes import me


def _credentials(token: str) -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme='Bearer', credentials=token)


def test_access_token_round_trip() -> None:
    token = jwt_handler.create_access_token(subject='owner@salon.test', expires_minutes=5)

    payload = jwt_handler.decode_access_token(token)

    assert payload['sub'] == 'owner@salon.test'
    assert payload['exp'] > payload['iat']


def test_get_current_user_resolves_token_subject(db, owner) -> None:
    token = jwt_handler.create_access_token(subject='Owner@Salon.test')

    user = get_current_user(credentials=_credentials(token), db=db)

    assert user.id == owner.id
    assert me(current_user=user) == {'email': 'owner@salon.test', 'role': 'owner', 'business_name': 'Salon Test'}


@pytest.mark.parametrize('token', ['not-a-token', jwt_handler.create_access_token(subject='nobody@salon.test')])
def test_get_current_user_rejects_invalid_tokens(db, owner, token: str) -> None:
    with pytest.raises(HTTPException) as exception_info:
        get_current_user(credentials=_credentials(token), db=db)

    assert exception_info.value.status_code == 401


def test_get_current_user_rejects_expired_tokens(db, owner) -> None:
    token = jwt_handler.create_access_token(subject='owner@salon.test', expires_minutes=-1)

    with pytest.raises(HTTPException) as exception_info:
        get_current_user(credentials=_credentials(token), db=db)

    assert exception_info.value.detail == 'Invalid token'
