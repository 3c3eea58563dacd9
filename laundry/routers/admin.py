from datetime import date
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List, Optional

from laundry.database import get_db
from laundry.deps import get_actor
from laundry.schemas.external import ReportResponse
from laundry.schemas.order import DriverAssignment, OrderResponse, TransitionRequest
from laundry.schemas.user import UserCreate, UserResponse, RoleUpdate
from laundry.services import account_service, order_service, order_state, report_service
from laundry.services.authorization import ActorContext, authorize
from laundry.utils.enums import Role

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/users", response_model=List[UserResponse])
def list_users(db: Session = Depends(get_db), actor: ActorContext = Depends(get_actor)):
    return account_service.list_users(db, actor)


@router.post("/users", response_model=UserResponse, status_code=201)
def create_user(payload: UserCreate, db: Session = Depends(get_db), actor: ActorContext = Depends(get_actor)):
    user = account_service.create_user(db, actor, payload)
    return account_service.to_response(db, user)


@router.put("/users/{user_id}/role", response_model=UserResponse)
def set_role(user_id: str, payload: RoleUpdate, db: Session = Depends(get_db),
             actor: ActorContext = Depends(get_actor)):
    user = account_service.set_role(db, actor, user_id, payload.role)
    return account_service.to_response(db, user)


@router.delete("/users/{user_id}")
def delete_user(user_id: str, db: Session = Depends(get_db), actor: ActorContext = Depends(get_actor)):
    deleted = account_service.delete_user(db, actor, user_id)
    return {"success": True, "deleted": deleted}


@router.post("/orders/{order_id}/override", response_model=OrderResponse)
def override_status(order_id: int, payload: TransitionRequest, db: Session = Depends(get_db),
                    actor: ActorContext = Depends(get_actor)):
    authorize(actor, Role.ADMIN)
    order = order_service.get_order_for_actor(db, actor, order_id)
    return order_state.override_status(db, actor, order, payload.status, payload.note)


@router.put("/orders/{order_id}/driver", response_model=OrderResponse)
def assign_driver(order_id: int, payload: DriverAssignment, db: Session = Depends(get_db),
                  actor: ActorContext = Depends(get_actor)):
    authorize(actor, Role.ADMIN)
    order = order_service.get_order_for_actor(db, actor, order_id)
    return order_state.assign_driver(db, actor, order, payload.driver_id)


@router.get("/reports", response_model=ReportResponse)
def reports(date_from: Optional[date] = None, date_to: Optional[date] = None, db: Session = Depends(get_db),
            actor: ActorContext = Depends(get_actor)):
    return report_service.build_report(db, actor, date_from, date_to)
