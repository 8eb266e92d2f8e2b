import logging
from typing import Annotated
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from marketplace_backend.api.exceptions import BadRequestException, NotFoundException, UnauthorizedException
from marketplace_backend.database import get_db
from marketplace_backend.interface.auth import AuthResponse, LoginRequest
from marketplace_backend.interface.tokens import create_access_token, hash_password, verify_password
from marketplace_backend.interface.users import UserCreate, UserGet, UserList, UserRoleEnum
from marketplace_backend.model.auth import User
from marketplace_backend.permissions.auth import get_current_permissions
from marketplace_backend.permissions.principal import Principal
from marketplace_backend.repositories import UserRepository

logger = logging.getLogger(__name__)

signup_router = APIRouter()


@signup_router.post("/cadastro", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(payload: UserCreate, db: Session = Depends(get_db)):

    email = payload.email.lower()
    users = UserRepository(db)

    if users.find_by_email(email) is not None:
        raise BadRequestException(detail="Email já cadastrado")

    user = User(
        name=payload.name,
        email=email,
        password=hash_password(payload.password),
        role=UserRoleEnum(payload.role).value,
        accessible_course_ids=[]
    )

    try:
        db.add(user)
        db.commit()
        db.refresh(user)
    except IntegrityError:
        db.rollback()
        raise BadRequestException(detail="Email já cadastrado")

    logger.info(f"Registered user {user.id} with role {user.role}")

    return AuthResponse(
        message="Usuário cadastrado com sucesso",
        token=create_access_token(user.id, user.role),
        user=UserList.model_validate(user)
    )


@signup_router.post("/login", response_model=AuthResponse)
def login(payload: LoginRequest, db: Session = Depends(get_db)):

    user = UserRepository(db).find_by_email(payload.email)

    if user is None:
        raise NotFoundException(detail="Usuário não encontrado")

    if not verify_password(payload.password, user.password):
        logger.info(f"Failed login for user {user.id}")
        raise UnauthorizedException(detail="Senha incorreta")

    return AuthResponse(
        message="Login realizado com sucesso",
        token=create_access_token(user.id, user.role),
        user=UserList.model_validate(user)
    )


@signup_router.get("/me", response_model=UserGet)
def me(permissions: Annotated[Principal, Depends(get_current_permissions)], db: Session = Depends(get_db)):

    user = UserRepository(db).get_by_id_optional(permissions.get_user_id_or_throw())

    if user is None:
        raise NotFoundException(detail="Usuário não encontrado")

    return UserGet.model_validate(user)
