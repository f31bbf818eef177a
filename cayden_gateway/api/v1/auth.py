"""POST /v1/auth/register - create a user with a checking account"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from cayden_gateway.api.v1.schemas import RegisterRequest, RegisterResponse
from cayden_gateway.infrastructure.database.session import get_db
from cayden_gateway.infrastructure.security.tokens import create_access_token
from cayden_gateway.services.accounts import register_user

router = APIRouter()


@router.post("/auth/register", response_model=RegisterResponse, status_code=201)
def register(body: RegisterRequest, db: Session = Depends(get_db)):
    user_id = register_user(db, body.email.lower(), body.password, full_name=body.full_name)
    return RegisterResponse(user_id=user_id, access_token=create_access_token(user_id))
