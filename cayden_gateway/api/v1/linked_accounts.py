"""Linked external bank accounts"""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from cayden_gateway.api.dependencies import RequestContext, get_request_context
from cayden_gateway.api.v1.schemas import DeletedResponse, LinkAccountRequest, LinkedAccountResponse
from cayden_gateway.infrastructure.database.session import get_db
from cayden_gateway.services import linked_accounts as linked_service

router = APIRouter()


@router.get("/linked-accounts", response_model=List[LinkedAccountResponse])
def list_linked_accounts(ctx: RequestContext = Depends(get_request_context), db: Session = Depends(get_db)):
    return [LinkedAccountResponse.from_domain(a) for a in linked_service.list_linked_accounts(db, ctx.user_id)]


@router.post("/linked-accounts", response_model=LinkedAccountResponse, status_code=201)
def link_account(body: LinkAccountRequest, ctx: RequestContext = Depends(get_request_context), db: Session = Depends(get_db)):
    linked = linked_service.link_account(
        db,
        ctx.user_id,
        linked_service.LinkAccountInput(
            bank_name=body.bank_name,
            account_holder_name=body.account_holder_name,
            account_number_last4=body.account_number_last4,
            routing_number=body.routing_number,
            account_type=body.account_type,
        ),
    )
    return LinkedAccountResponse.from_domain(linked)


@router.get("/linked-accounts/{linked_id}", response_model=LinkedAccountResponse)
def get_linked_account(linked_id: str, ctx: RequestContext = Depends(get_request_context), db: Session = Depends(get_db)):
    return LinkedAccountResponse.from_domain(linked_service.get_linked_account(db, ctx.user_id, linked_id))


@router.post("/linked-accounts/{linked_id}/verify", response_model=LinkedAccountResponse)
def verify_linked_account(linked_id: str, ctx: RequestContext = Depends(get_request_context), db: Session = Depends(get_db)):
    """Simulated instant verification"""
    return LinkedAccountResponse.from_domain(linked_service.verify_linked_account(db, ctx.user_id, linked_id))


@router.put("/linked-accounts/{linked_id}/primary", response_model=LinkedAccountResponse)
def set_primary(linked_id: str, ctx: RequestContext = Depends(get_request_context), db: Session = Depends(get_db)):
    return LinkedAccountResponse.from_domain(linked_service.set_primary_account(db, ctx.user_id, linked_id))


@router.delete("/linked-accounts/{linked_id}", response_model=DeletedResponse)
def unlink_account(linked_id: str, ctx: RequestContext = Depends(get_request_context), db: Session = Depends(get_db)):
    linked_service.unlink_account(db, ctx.user_id, linked_id)
    return DeletedResponse()
