import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from coursegrid.api.deps import STAFF_ROLES, get_current_user, get_db, get_optional_user
from coursegrid.core.security import create_access_token, get_password_hash, verify_password
from coursegrid.models.user import User, UserRole
from coursegrid.schemas.user import Token, UserCreate, UserLogin, UserOut

router = APIRouter()
logger = logging.getLogger(__name__)


def _query_user_by_email(db: Session, email: str) -> User | None:
    return db.execute(select(User).where(User.email == email)).scalar_one_or_none()


@router.post("/register", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def register(
    payload: UserCreate,
    db: Session = Depends(get_db),
    current_user: User | None = Depends(get_optional_user),
) -> UserOut:
    # Staff accounts are issued by an administrator; students and faculty sign up themselves.
    if payload.role in STAFF_ROLES and (current_user is None or current_user.role != UserRole.admin):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only an administrator can create admin or committee accounts",
        )

    existing = _query_user_by_email(db, payload.email)
    if existing:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")

    user = User(
        name=payload.name,
        email=payload.email,
        hashed_password=get_password_hash(payload.password),
        role=payload.role,
        department=payload.department,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered") from exc

    db.refresh(user)
    logger.info("Registered %s account %s", user.role.value, user.id)
    return user


def validate_login_user(payload: UserLogin, db: Session) -> User:
    user = _query_user_by_email(db, payload.email)
    if user is None or not verify_password(payload.password, user.hashed_password):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid email or password")
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User account is inactive")
    if payload.role and payload.role != user.role:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Role does not match user account")
    return user


@router.post("/login", response_model=Token)
def login(payload: UserLogin, db: Session = Depends(get_db)) -> Token:
    user = validate_login_user(payload, db)
    access_token = create_access_token(user.id, role=user.role.value)
    return Token(access_token=access_token, token_type="bearer", user=user)


@router.get("/me", response_model=UserOut)
def me(current_user: User = Depends(get_current_user)) -> UserOut:
    return current_user
