import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from scidatahub.auth import jwt_handler
from scidatahub.auth.dependencies import get_current_user, resolve_token_user
from scidatahub.auth.passwords import hash_password, verify_password
from scidatahub.auth.permissions import permissions_for
from scidatahub.core import config
from scidatahub.database import get_db, utcnow
from scidatahub.models.user import User
from scidatahub.routes.common import store_errors
from scidatahub.schemas.common import page_fields
from scidatahub.schemas.user import (
    AuthResponse,
    LoginRequest,
    ProfileUpdateRequest,
    ProfileUpdateResponse,
    RegisterRequest,
    UserPage,
    UserResponse,
    UserResponseEnvelope,
    VerifyRequest,
    VerifyResponse,
)
from scidatahub.services.queries import paginate

router = APIRouter(tags=['auth'])

logger = logging.getLogger(__name__)


def _get_user_or_404(db: Session, user_id: str) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='User not found')
    return user


@router.post('/register', response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(data: RegisterRequest, db: Session = Depends(get_db)):
    with store_errors(db, 'Registration'):
        if db.query(User).filter(User.email == data.email).first():
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='User already exists')

        user = User(
            email=data.email,
            hashed_password=hash_password(data.password),
            first_name=data.first_name,
            last_name=data.last_name,
            role=data.role,
            organization=data.organization,
            permissions=permissions_for(data.role),
        )
        db.add(user)
        db.commit()
        db.refresh(user)

        logger.info('Registered user %s with role %s', user.id, user.role)
        return AuthResponse(
            message='User registered successfully',
            token=jwt_handler.create_user_token(user),
            user=UserResponse.model_validate(user),
        )


@router.post('/login', response_model=AuthResponse)
def login(data: LoginRequest, db: Session = Depends(get_db)):
    with store_errors(db, 'Login'):
        user = db.query(User).filter(User.email == data.email).first()
        if user is None:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail='Invalid credentials')

        if not user.is_active:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail='Account is deactivated')

        if not verify_password(data.password, user.hashed_password):
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail='Invalid credentials')

        user.last_login = utcnow()
        db.commit()
        db.refresh(user)

        return AuthResponse(
            message='Login successful',
            token=jwt_handler.create_user_token(user),
            user=UserResponse.model_validate(user),
        )


@router.post('/verify', response_model=VerifyResponse)
def verify(data: VerifyRequest, db: Session = Depends(get_db)):
    if not data.token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail='No token provided')

    with store_errors(db, 'Token verification'):
        user = resolve_token_user(data.token, db)
        return VerifyResponse(valid=True, user=UserResponse.model_validate(user))


@router.get('/me', response_model=UserResponse)
def me(current_user: User = Depends(get_current_user)):
    return UserResponse.model_validate(current_user)


@router.get('/profile/{user_id}', response_model=UserResponseEnvelope)
def get_profile(user_id: str, db: Session = Depends(get_db)):
    with store_errors(db, 'Profile fetch'):
        return UserResponseEnvelope(user=UserResponse.model_validate(_get_user_or_404(db, user_id)))


@router.put('/profile/{user_id}', response_model=ProfileUpdateResponse)
def update_profile(user_id: str, data: ProfileUpdateRequest, db: Session = Depends(get_db)):
    with store_errors(db, 'Profile update'):
        user = _get_user_or_404(db, user_id)
        for attribute, value in data.model_dump(exclude_unset=True).items():
            setattr(user, attribute, value)
        db.commit()
        db.refresh(user)

        return ProfileUpdateResponse(
            message='Profile updated successfully',
            user=UserResponse.model_validate(user),
        )


@router.post('/users/{user_id}/deactivate', response_model=ProfileUpdateResponse)
def deactivate_user(user_id: str, db: Session = Depends(get_db)):
    with store_errors(db, 'User deactivation'):
        user = _get_user_or_404(db, user_id)
        user.is_active = False
        db.commit()
        db.refresh(user)

        logger.info('Deactivated user %s', user_id)
        return ProfileUpdateResponse(
            message='User deactivated',
            user=UserResponse.model_validate(user),
        )


@router.get('/users', response_model=UserPage)
def list_users(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=config.DEFAULT_PAGE_SIZE, ge=1, le=config.MAX_PAGE_SIZE),
    role: str | None = Query(default=None),
    search: str | None = Query(default=None),
    db: Session = Depends(get_db),
):
    with store_errors(db, 'Users fetch'):
        query = db.query(User)
        if role:
            query = query.filter(User.role == role.strip().lower())
        if search:
            pattern = f'%{search.strip()}%'
            query = query.filter(
                or_(
                    User.first_name.ilike(pattern),
                    User.last_name.ilike(pattern),
                    User.email.ilike(pattern),
                )
            )

        result = paginate(query.order_by(User.created_at.desc(), User.id.asc()), page, limit)
        return UserPage(
            users=[UserResponse.model_validate(user) for user in result.items],
            **page_fields(result),
        )
