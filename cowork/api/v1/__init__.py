# API v1 Package
from cowork.api.v1 import (
    auth, users, branches, crm, packages, accounting, billing, payroll,
    meeting_rooms, inventory, complaints, tasks, contracts, notifications, time_tracking
)

__all__ = [
    'auth',
    'users',
    'branches',
    'crm',
    'packages',
    'accounting',
    'billing',
    'payroll',
    'meeting_rooms',
    'inventory',
    'complaints',
    'tasks',
    'contracts',
    'notifications',
    'time_tracking',
]
