from typing import Dict, Optional
from pydantic import BaseModel, PrivateAttr
from marketplace_backend.api.exceptions import UnauthorizedException


SELLER_ROLE = "VENDEDOR"
USER_ROLE = "USER"


class Principal(BaseModel):
    """Authenticated subject consumed by every handler"""

    user_id: Optional[str] = None
    role: str = USER_ROLE

    # Cache for ownership checks made during one request
    _ownership_cache: Dict[str, bool] = PrivateAttr(default_factory=dict)

    @property
    def is_seller(self) -> bool:
        return self.role == SELLER_ROLE

    def get_user_id_or_throw(self) -> str:
        if self.user_id is None:
            raise UnauthorizedException("User ID not found")
        return self.user_id

    def is_owner_of(self, owner_id: Optional[str]) -> bool:
        """True if this principal is the seller owning a course"""
        if owner_id is None or self.user_id is None:
            return False

        cached = self._ownership_cache.get(owner_id)
        if cached is not None:
            return cached

        result = self.is_seller and str(owner_id) == str(self.user_id)
        self._ownership_cache[owner_id] = result
        return result
