"""Account provisioning collaborators and item handlers."""

from .client import DomainRecordClient, IdentityProvisioningClient
from .handlers import (
    make_account_handler,
    make_account_retry_handler,
    register_account_handlers,
)

__all__ = [
    "DomainRecordClient",
    "IdentityProvisioningClient",
    "make_account_handler",
    "make_account_retry_handler",
    "register_account_handlers",
]
