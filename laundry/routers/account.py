from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from laundry.database import get_db
from laundry.deps import get_actor
from laundry.schemas.user import PointsSummary, PointsTransactionResponse
from laundry.services import points_service
from laundry.services.authorization import ActorContext

router = APIRouter(prefix="/me", tags=["account"])


@router.get("/points", response_model=PointsSummary)
def my_points(db: Session = Depends(get_db), actor: ActorContext = Depends(get_actor)):
    transactions = points_service.list_active_transactions(db, actor.user_id)
    return PointsSummary(
        balance=points_service.get_balance(db, actor.user_id),
        transactions=[PointsTransactionResponse.model_validate(t) for t in transactions],
    )
