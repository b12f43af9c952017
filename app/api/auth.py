from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.api.dependencies import get_current_user
from app.database import get_db
from app.models.user import User
from app.schemas.user import RegisterRequest, LoginRequest, UserResponse
from app.services.auth_service import (
    AuthService,
    EmailAlreadyRegisteredError,
    InvalidCredentialsError,
)
from app.tasks.mail_tasks import send_welcome_email
from app.utils.responses import ApiResponse

router = APIRouter(tags=["Authentication"])


@router.post(
    "/register",
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user",
    description="Create a user account and return an authentication token."
)
def register(
    data: RegisterRequest,
    db: Session = Depends(get_db)
):
    """
    Register a new user.

    A welcome e-mail is queued on a Celery worker once the account exists.
    """
    service = AuthService(db)

    try:
        user, token = service.register(data)
    except EmailAlreadyRegisteredError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(e)
        )

    send_welcome_email.delay(user.id)

    return ApiResponse.success({"token": token}, "User created successfully", 201)


@router.post(
    "/login",
    summary="Login a user",
    description="Authenticate with e-mail and password and return a new token."
)
def login(
    data: LoginRequest,
    db: Session = Depends(get_db)
):
    """Login and receive a bearer token."""
    service = AuthService(db)

    try:
        user, token = service.login(data.email, data.password)
    except InvalidCredentialsError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e)
        )

    return ApiResponse.success(
        {
            "token": token,
            "user": UserResponse.model_validate(user).model_dump(mode="json"),
        },
        "Login successful",
    )


@router.get(
    "/user",
    summary="Get authenticated user",
    description="Return the currently authenticated user's details."
)
def current_user(user: User = Depends(get_current_user)):
    """Return the caller; the response middleware adds the envelope."""
    return UserResponse.model_validate(user).model_dump(mode="json")


@router.post(
    "/logout",
    summary="Logout user",
    description="Revoke every token of the authenticated user."
)
def logout(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Logout from all sessions."""
    AuthService(db).revoke_all(user)
    return ApiResponse.success(None, "Logged out successfully")
