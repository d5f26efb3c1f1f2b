"""Account domain exports.

``AccountService`` lives in :mod:`gallery.modules.accounts.service`; it is not
re-exported here because it depends on the SQL repositories.
"""

from .exceptions import AccountAlreadyExistsError, AccountError, AccountNotFoundError, InvalidRoleError
from .models import ROLES, Account, AccountCreateInput, AccountUpdateInput, QuotaRecord, UNSET

__all__ = [
    "ROLES",
    "UNSET",
    "Account",
    "AccountAlreadyExistsError",
    "AccountCreateInput",
    "AccountError",
    "AccountNotFoundError",
    "AccountUpdateInput",
    "InvalidRoleError",
    "QuotaRecord",
]
