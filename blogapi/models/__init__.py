from .account import Account, Role
from .db import Base

__all__ = [
	"Account",
	"Base",
	"Role",
]
