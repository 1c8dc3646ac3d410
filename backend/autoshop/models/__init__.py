from .auth import User, SessionToken, ROLE_ADMIN, ROLE_MECHANIC, VALID_ROLES
from .customers import Customer, Vehicle
from .inventory import InventoryItem
from .work_orders import WorkOrder, WorkOrderPart, WorkOrderStatus
from .appointments import Appointment, AppointmentStatus, DEFAULT_DURATION_MINUTES

__all__ = [
    'User', 'SessionToken', 'ROLE_ADMIN', 'ROLE_MECHANIC', 'VALID_ROLES',
    'Customer', 'Vehicle',
    'InventoryItem',
    'WorkOrder', 'WorkOrderPart', 'WorkOrderStatus',
    'Appointment', 'AppointmentStatus', 'DEFAULT_DURATION_MINUTES',
]
