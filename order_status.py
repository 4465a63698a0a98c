"""
Order lifecycle

pending -> in-progress -> ready -> completed, with cancelled reachable from
pending and in-progress. completed and cancelled are terminal.
"""
from enum import Enum
from typing import Dict, Tuple, Union


class OrderStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    READY = "ready"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


TRANSITIONS: Dict[OrderStatus, Tuple[OrderStatus, ...]] = {
    OrderStatus.PENDING: (OrderStatus.IN_PROGRESS, OrderStatus.CANCELLED),
    OrderStatus.IN_PROGRESS: (OrderStatus.READY, OrderStatus.CANCELLED),
    OrderStatus.READY: (OrderStatus.COMPLETED,),
    OrderStatus.COMPLETED: (),
    OrderStatus.CANCELLED: (),
}


def next_statuses(current: Union[OrderStatus, str]) -> Tuple[OrderStatus, ...]:
    return TRANSITIONS[OrderStatus(current)]


def can_transition(current: Union[OrderStatus, str], new: Union[OrderStatus, str]) -> bool:
    try:
        return OrderStatus(new) in next_statuses(current)
    except ValueError:
        return False


def is_terminal(status: Union[OrderStatus, str]) -> bool:
    return not next_statuses(status)
