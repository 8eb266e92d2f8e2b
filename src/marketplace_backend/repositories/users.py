"""
User repository.
"""

from typing import Optional
from sqlalchemy.orm import Session

from marketplace_backend.model.auth import User
from marketplace_backend.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):

    def __init__(self, db: Session):
        super().__init__(db, User)

    def find_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email.lower()).first()

    def lock(self, user_id: str) -> User:
        """Load the user row with a write lock held until the transaction ends."""
        return self.get_by_id(user_id, for_update=True)
