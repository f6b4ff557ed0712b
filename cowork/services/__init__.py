# Services Package
from cowork.services.user_service import UserService
from cowork.services.branch_service import BranchService
from cowork.services.crm_service import CustomerService, VendorService
from cowork.services.package_service import PackageService
from cowork.services.accounting_service import AccountService, LedgerService
from cowork.services.billing_service import InvoiceService, BillService
from cowork.services.payroll_service import PayrollService
from cowork.services.booking_service import MeetingRoomService, BookingService
from cowork.services.inventory_service import InventoryService
from cowork.services.complaint_service import ComplaintService
from cowork.services.task_service import TaskService
from cowork.services.contract_service import ContractService
from cowork.services.notification_service import NotificationService
from cowork.services.time_tracking_service import TimeTrackingService
from cowork.services.audit_service import AuditService, AuditAction

__all__ = [
    'UserService',
    'BranchService',
    'CustomerService',
    'VendorService',
    'PackageService',
    'AccountService',
    'LedgerService',
    'InvoiceService',
    'BillService',
    'PayrollService',
    'MeetingRoomService',
    'BookingService',
    'InventoryService',
    'ComplaintService',
    'TaskService',
    'ContractService',
    'NotificationService',
    'TimeTrackingService',
    'AuditService',
    'AuditAction',
]
