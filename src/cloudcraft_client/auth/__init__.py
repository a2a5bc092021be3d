"""Authentication strategies for Cloudcraft."""
from .base import AuthStrategy
from .bearer import BearerTokenAuth
from .headers import StaticHeaderAuth

__all__ = ["AuthStrategy", "BearerTokenAuth", "StaticHeaderAuth"]
