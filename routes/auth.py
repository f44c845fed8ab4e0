import logging

from fastapi import APIRouter, HTTPException, status, Depends
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError

from core.security import create_access_token, verify_password, decode_access_token
from core.storage import HabitStore, get_store
from models.user import User, UserCreate, UserLogin, UserPublic, AuthResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/auth/login")

def build_auth_response(user: User) -> AuthResponse:
    token = create_access_token(subject=user.id)
    return AuthResponse(token=token, user=UserPublic(id=user.id, name=user.name, email=user.email))

async def get_current_user_id(token: str = Depends(oauth2_scheme)) -> str:
    """
    Resolves the bearer token to the owning user's id.

    The id is trusted from here on; habit routes do not look the user up again.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        user_id = decode_access_token(token)
        if user_id is None:
            raise credentials_exception
    except JWTError:
        raise credentials_exception
    return user_id

@router.post("/register", response_model=AuthResponse)
async def register(user_in: UserCreate, store: HabitStore = Depends(get_store)):
    if await store.get_user_by_email(user_in.email):
        raise HTTPException(status_code=400, detail="User already exists")

    user = await store.create_user(user_in)
    logger.info("Registered user %s", user.id)
    return build_auth_response(user)

@router.post("/login", response_model=AuthResponse)
async def login(credentials: UserLogin, store: HabitStore = Depends(get_store)):
    user = await store.get_user_by_email(credentials.email)
    if not user or not verify_password(credentials.password, user.password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return build_auth_response(user)

@router.get("/me", response_model=UserPublic)
async def read_users_me(user_id: str = Depends(get_current_user_id), store: HabitStore = Depends(get_store)):
    user = await store.get_user(user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return UserPublic(id=user.id, name=user.name, email=user.email)
