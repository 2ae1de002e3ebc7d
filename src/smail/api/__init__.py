"""HTTP surface."""

from smail.api.app import create_app
from smail.api.services import Services

__all__ = ["Services", "create_app"]
