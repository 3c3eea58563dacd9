from dataclasses import dataclass
from typing import Dict, FrozenSet, Tuple

from fastapi import HTTPException

from laundry.utils.enums import Role, OrderStatus

NOT_AUTHORIZED = "Not authorized"


@dataclass(frozen=True)
class ActorContext:
    """The authenticated caller, passed explicitly into every service call."""
    user_id: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


def authorize(actor: ActorContext, *roles: Role) -> None:
    if actor is None or actor.role not in roles:
        raise HTTPException(status_code=403, detail=NOT_AUTHORIZED)


S = OrderStatus

# (from, to) -> roles allowed to make that move through the normal lifecycle.
# Admins may additionally force any status through the override operation.
TRANSITION_MATRIX: Dict[Tuple[OrderStatus, OrderStatus], FrozenSet[Role]] = {
    (S.PENDING, S.ACCEPTED): frozenset({Role.DRIVER, Role.ADMIN}),
    (S.REJECTED, S.ACCEPTED): frozenset({Role.DRIVER, Role.ADMIN}),
    (S.PENDING, S.REJECTED): frozenset({Role.DRIVER, Role.ADMIN}),
    (S.REJECTED, S.CANCELLED): frozenset({Role.CUSTOMER, Role.ADMIN}),
    (S.ACCEPTED, S.PICKING_UP): frozenset({Role.DRIVER, Role.ADMIN}),
    (S.PICKING_UP, S.WASHING): frozenset({Role.DRIVER, Role.ADMIN}),
    (S.WASHING, S.RETURNING): frozenset({Role.DRIVER, Role.ADMIN}),
    (S.RETURNING, S.DELIVERED): frozenset({Role.DRIVER, Role.ADMIN}),
    (S.PENDING, S.CANCELLED): frozenset({Role.CUSTOMER, Role.ADMIN}),
    (S.ACCEPTED, S.CANCELLED): frozenset({Role.CUSTOMER, Role.ADMIN}),
    (S.PICKING_UP, S.CANCELLED): frozenset({Role.ADMIN}),
    (S.WASHING, S.CANCELLED): frozenset({Role.ADMIN}),
    (S.RETURNING, S.CANCELLED): frozenset({Role.ADMIN}),
}

# moves a driver may only make on an order assigned to them
ASSIGNED_DRIVER_ONLY = frozenset({S.PICKING_UP, S.WASHING, S.RETURNING, S.DELIVERED})


def is_legal_transition(current: OrderStatus, target: OrderStatus) -> bool:
    return (OrderStatus(current), OrderStatus(target)) in TRANSITION_MATRIX


def can_transition(actor: ActorContext, order, target: OrderStatus) -> bool:
    """Role, ownership and assignment check for one lifecycle move."""
    current = OrderStatus(order.status)
    target = OrderStatus(target)
    allowed = TRANSITION_MATRIX.get((current, target))
    if not allowed or actor.role not in allowed:
        return False
    if actor.role == Role.CUSTOMER:
        return order.user_id == actor.user_id
    if actor.role == Role.DRIVER:
        if target in ASSIGNED_DRIVER_ONLY:
            return order.driver_id == actor.user_id
        if target == S.ACCEPTED and current == S.REJECTED:
            return all(r.driver_id != actor.user_id for r in order.rejections)
    return True
