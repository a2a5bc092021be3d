"""Resource-specific convenience wrappers."""
from .accounts import AwsAccountsResource
from .blueprints import BlueprintsResource
from .users import UsersResource

__all__ = ["AwsAccountsResource", "BlueprintsResource", "UsersResource"]
