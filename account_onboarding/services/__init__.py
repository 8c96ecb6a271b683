"""Service layer exported symbols."""

from .accounts import AccountService
from .audit import AuditEvent, AuditWriterService
from .authorization import AuthorizationService, RequestContext
from .cross_account import CfnStackClient, CrossAccountClientFactory
from .object_store import ObjectRef, S3Service
from .permissions import BatchCheckResult, PermissionCheckResult, PermissionService
from .stack import StackProvisioningService, TemplateInfo
from .template_diff import compare_templates, normalize_template
from .templates import CfnTemplateService
from .users import UserService

__all__ = [
    "AccountService",
    "AuditEvent",
    "AuditWriterService",
    "AuthorizationService",
    "BatchCheckResult",
    "CfnStackClient",
    "CfnTemplateService",
    "CrossAccountClientFactory",
    "ObjectRef",
    "PermissionCheckResult",
    "PermissionService",
    "RequestContext",
    "S3Service",
    "StackProvisioningService",
    "TemplateInfo",
    "UserService",
    "compare_templates",
    "normalize_template",
]
