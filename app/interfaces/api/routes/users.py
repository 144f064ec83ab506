"""Rutas para consultar la cuenta autenticada."""

from fastapi import APIRouter, Depends

from app.domain.entities import User
from app.interfaces.api.dependencies import get_current_active_user
from app.interfaces.api.schemas import UserRead

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=UserRead)
def read_current_user(current_user: User = Depends(get_current_active_user)):
    """Devuelve la información del usuario autenticado."""

    return UserRead.model_validate(current_user)
