"""
Auth Routes - registration, login and restaurant profile
"""
from fastapi import APIRouter, HTTPException, Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from datetime import datetime, timezone, timedelta
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.future import select
import logging
import uuid

from database import get_postgres_session, User
from database.config import auth_settings
from app.requests.application.use_cases import SwitchRestaurantUseCase
from app.requests.domain.errors import DomainError
from app.requests.domain.models import RESTAURANTS, CurrentUser, UserRole
from routes.dependencies import get_clock, get_user_profile_repository, to_http_error

logger = logging.getLogger(__name__)

# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# Security
security = HTTPBearer()

# Create router
auth_router = APIRouter(prefix="/api", tags=["Auth"])


# ==================== PYDANTIC MODELS ====================

class UserCreate(BaseModel):
    display_name: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=6)
    role: UserRole
    restaurant_id: Optional[str] = None


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class ProfileUpdate(BaseModel):
    display_name: Optional[str] = None
    photo_url: Optional[str] = None


class ActiveRestaurantUpdate(BaseModel):
    restaurant_id: Optional[str] = None  # None = all restaurants (maintenance only)


class UserResponse(BaseModel):
    uid: str
    email: str
    display_name: Optional[str] = None
    role: str
    restaurant_id: Optional[str] = None
    active_restaurant_id: Optional[str] = None
    photo_url: Optional[str] = None


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponse


# ==================== HELPER FUNCTIONS ====================

def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def create_access_token(data: dict) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + timedelta(minutes=auth_settings.access_token_expire_minutes)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, auth_settings.secret_key, algorithm=auth_settings.algorithm)


def to_user_response(user: User) -> UserResponse:
    return UserResponse(
        uid=user.id,
        email=user.email,
        display_name=user.display_name,
        role=user.role,
        restaurant_id=user.restaurant_id,
        active_restaurant_id=user.active_restaurant_id,
        photo_url=user.photo_url,
    )


def to_current_user(user: User) -> CurrentUser:
    return CurrentUser(
        uid=user.id,
        role=user.role,
        restaurant_id=user.restaurant_id,
        active_restaurant_id=user.active_restaurant_id,
        display_name=user.display_name,
    )


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    session: AsyncSession = Depends(get_postgres_session)
):
    """Get current user row from the bearer token"""
    try:
        token = credentials.credentials
        payload = jwt.decode(token, auth_settings.secret_key, algorithms=[auth_settings.algorithm])
        user_id = payload.get("sub")
        if user_id is None:
            raise HTTPException(status_code=401, detail="Session invalide")

        result = await session.execute(select(User).where(User.id == user_id))
        user = result.scalar_one_or_none()

        if user is None:
            raise HTTPException(status_code=401, detail="Utilisateur introuvable")

        return user
    except JWTError:
        raise HTTPException(status_code=401, detail="Session invalide")


async def get_current_context(user: User = Depends(get_current_user)) -> CurrentUser:
    """The explicit per-request user context handed to use cases."""
    return to_current_user(user)


# ==================== AUTH ROUTES ====================

@auth_router.post("/auth/register", response_model=TokenResponse)
async def register(
    user_data: UserCreate,
    session: AsyncSession = Depends(get_postgres_session)
):
    """Create an account with its role and restaurant"""
    if user_data.role == UserRole.MAINTENANCE:
        restaurant_id = None
    else:
        if not user_data.restaurant_id:
            raise HTTPException(status_code=400, detail="Restaurant requis")
        if user_data.restaurant_id not in RESTAURANTS:
            raise HTTPException(status_code=400, detail="Restaurant inconnu")
        restaurant_id = user_data.restaurant_id

    result = await session.execute(select(User).where(User.email == user_data.email))
    if result.scalar_one_or_none():
        raise HTTPException(status_code=400, detail="Cet email est déjà utilisé")

    new_user = User(
        id=str(uuid.uuid4()),
        email=user_data.email,
        password=get_password_hash(user_data.password),
        display_name=user_data.display_name,
        role=user_data.role.value,
        restaurant_id=restaurant_id,
        is_active=True,
    )
    session.add(new_user)
    await session.commit()
    await session.refresh(new_user)

    logger.info(f"Registered user {new_user.id} as {new_user.role}")

    return TokenResponse(
        access_token=create_access_token({"sub": new_user.id}),
        user=to_user_response(new_user),
    )


@auth_router.post("/auth/login", response_model=TokenResponse)
async def login(
    credentials: UserLogin,
    session: AsyncSession = Depends(get_postgres_session)
):
    """Login user"""
    result = await session.execute(select(User).where(User.email == credentials.email))
    user = result.scalar_one_or_none()

    if not user or not verify_password(credentials.password, user.password):
        raise HTTPException(status_code=401, detail="Email ou mot de passe incorrect")

    if not user.is_active:
        raise HTTPException(status_code=403, detail="Votre compte est désactivé")

    return TokenResponse(
        access_token=create_access_token({"sub": user.id}),
        user=to_user_response(user),
    )


@auth_router.get("/auth/me", response_model=UserResponse)
async def get_me(current_user: User = Depends(get_current_user)):
    """Get current user info"""
    return to_user_response(current_user)


@auth_router.put("/auth/profile", response_model=UserResponse)
async def update_profile(
    profile_data: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_postgres_session)
):
    """Update display name and photo"""
    if profile_data.display_name is not None:
        if not profile_data.display_name.strip():
            raise HTTPException(status_code=400, detail="Nom requis")
        current_user.display_name = profile_data.display_name.strip()
    if profile_data.photo_url is not None:
        current_user.photo_url = profile_data.photo_url or None

    current_user.updated_at = datetime.utcnow()
    await session.commit()

    return to_user_response(current_user)


@auth_router.post("/auth/active-restaurant")
async def set_active_restaurant(
    selection: ActiveRestaurantUpdate,
    current_user: CurrentUser = Depends(get_current_context),
    repository=Depends(get_user_profile_repository),
    clock=Depends(get_clock),
):
    """Switch the restaurant the current user is looking at"""
    use_case = SwitchRestaurantUseCase(repository=repository, clock=clock)
    try:
        updated = await use_case.execute(selection.restaurant_id, current_user)
    except DomainError as exc:
        raise to_http_error(exc)
    except SQLAlchemyError:
        logger.exception(f"Restaurant switch failed for {current_user.uid}")
        raise HTTPException(status_code=500, detail="Erreur lors du changement de restaurant")

    return {
        "message": "Restaurant sélectionné",
        "restaurant_id": updated.restaurant_id,
        "active_restaurant_id": updated.active_restaurant_id,
    }
