"""Transaction PIN management and verification"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from cayden_gateway.api.dependencies import RequestContext, get_request_context
from cayden_gateway.api.v1.schemas import (
    PinRemoveRequest,
    PinSetRequest,
    PinStatusResponse,
    PinUpdatedResponse,
    PinVerifyRequest,
    PinVerifyResponse,
)
from cayden_gateway.infrastructure.database.session import get_db
from cayden_gateway.services import pin as pin_service

router = APIRouter()


@router.get("/pin/status", response_model=PinStatusResponse)
def pin_status(ctx: RequestContext = Depends(get_request_context), db: Session = Depends(get_db)):
    return PinStatusResponse(has_pin=pin_service.has_pin(db, ctx.user_id))


@router.post("/pin", response_model=PinUpdatedResponse)
def set_pin(body: PinSetRequest, ctx: RequestContext = Depends(get_request_context), db: Session = Depends(get_db)):
    pin_service.set_pin(db, ctx.user_id, body.pin, body.password)
    return PinUpdatedResponse()


@router.post("/pin/verify", response_model=PinVerifyResponse)
def verify_pin(body: PinVerifyRequest, ctx: RequestContext = Depends(get_request_context), db: Session = Depends(get_db)):
    """Returns a pin token valid for two minutes, sent back as `x-pin-token`"""
    return PinVerifyResponse(verified=True, pin_token=pin_service.verify_pin(db, ctx.user_id, body.pin))


@router.delete("/pin", response_model=PinUpdatedResponse)
def remove_pin(body: PinRemoveRequest, ctx: RequestContext = Depends(get_request_context), db: Session = Depends(get_db)):
    pin_service.remove_pin(db, ctx.user_id, body.password)
    return PinUpdatedResponse()
