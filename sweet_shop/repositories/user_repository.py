# ==============================================================================
# USER REPOSITORY (JSON)
# ==============================================================================
# Encapsulates access to users.json
# Users are stored as a dictionary: {user_id: {email, username, ...}}
# ==============================================================================

from typing import List, Optional

from sweet_shop.errors import ConflictError, NotFoundError
from sweet_shop.models import User, UserRole
from sweet_shop.repositories.base import DictRepository
from sweet_shop.repositories.schema import USERS_SCHEMA, TableSchema


class UserRepository(DictRepository):
    """
    Credential store backed by a JSON file (or memory).

    Data format in users.json:
    {
        "3f0c...": {"email": "a@x.com", "password_hash": "scrypt:...", "role": "user", ...}
    }
    """

    def __init__(self, data_dir: Optional[str] = None, schema: TableSchema = USERS_SCHEMA):
        super().__init__(schema, data_dir)

    def find_by_email(self, email: str) -> Optional[User]:
        """
        Finds a user by e-mail.

        Args:
            email: Address, compared case-insensitively

        Returns:
            User or None
        """
        record = self.find_first('email', email.strip().lower())
        return User.from_dict(record) if record else None

    def find_by_id(self, user_id: str) -> Optional[User]:
        record = self.get_by_id(user_id)
        return User.from_dict(record) if record else None

    def create(self, user: User) -> User:
        """
        Inserts a new user.

        Raises:
            ConflictError: If the e-mail already exists
        """
        try:
            self.insert(user.to_dict())
        except ConflictError:
            raise ConflictError('User with this email already exists')
        return user

    def save(self, user: User) -> User:
        """
        Persists changes to an existing user (role, digest, username).

        Raises:
            NotFoundError: If no user has that id
        """
        if not self.replace(user.to_dict()):
            raise NotFoundError('User not found')
        return user

    def find_by_role(self, role: UserRole) -> List[User]:
        return [
            User.from_dict(record) for record in self.get_all().values()
            if record.get('role') == role.value
        ]
