"""
Sign-up, verification and user record endpoints.
"""

from fastapi import APIRouter, Request, status

from api.deps import IdentityDep
from schemas.user import (
    AuthCheckResponse,
    SignUpRequest,
    SignUpResponse,
    TokenResponse,
    UserIdsRequest,
    UserResponse,
)

router = APIRouter()


@router.post("/user/signup", response_model=SignUpResponse, status_code=status.HTTP_202_ACCEPTED)
async def sign_up(request_data: SignUpRequest, identity: IdentityDep) -> SignUpResponse:
    """
    Register an email address and send it a one-time verification link.

    Signing up again with the same email renames the user and replaces the
    outstanding code.
    """
    result = await identity.sign_up(request_data.nickname, str(request_data.email))
    return SignUpResponse(user_id=result.user_id, message=result.message)


@router.get("/user/{user_id}/code/{code}", response_model=TokenResponse)
async def verify_temp_code(user_id: str, code: str, identity: IdentityDep) -> TokenResponse:
    """Exchange the emailed one-time code for a bearer token."""
    token = await identity.verify_temp_code(user_id, code)
    return TokenResponse(user_id=user_id, access_token=token)


@router.get("/user/{user_id}/check", response_model=AuthCheckResponse)
async def check_auth(user_id: str, request: Request, identity: IdentityDep) -> AuthCheckResponse:
    """Report whether the bearer token belongs to this user."""
    authorized = await identity.check_auth(user_id, request.headers)
    return AuthCheckResponse(user_id=user_id, authorized=authorized)


@router.get("/user/{user_id}", response_model=UserResponse)
async def get_user(user_id: str, request: Request, identity: IdentityDep) -> UserResponse:
    user = await identity.get_user(user_id, request.headers)
    return UserResponse.from_user(user)


@router.delete("/user/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(user_id: str, request: Request, identity: IdentityDep) -> None:
    await identity.delete_user(user_id, request.headers)


@router.post("/users", response_model=list[UserResponse])
async def get_users(request_data: UserIdsRequest, identity: IdentityDep) -> list[UserResponse]:
    """Public records for a batch of user ids; 404 if any is unknown."""
    users = await identity.get_users(request_data.ids)
    return [UserResponse.from_user(user) for user in users]
