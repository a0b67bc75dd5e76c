import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from dataclasses import replace
from typing import List, Optional, Mapping, Any

from models import Staff, User, UserRole


class StaffDirectory(ABC):
    """Source of staff members for assignment and reporting."""

    @abstractmethod
    def active_staff(self) -> List[Staff]:
        """Active staff in their listed order."""

    @abstractmethod
    def all_staff(self) -> List[Staff]:
        """Every staff member, including inactive ones."""

    def find_staff(self, staff_id: int) -> Optional[Staff]:
        return next((m for m in self.all_staff() if m.id == staff_id), None)

    def staff_name(self, staff_id: Optional[int], default: str = 'Unknown') -> str:
        member = self.find_staff(staff_id) if staff_id is not None else None
        return member.name if member else default


class LocalStaffDirectory(StaffDirectory):
    """Staff taken from the data manager's own staff collection."""

    def __init__(self, data_manager):
        self.data_manager = data_manager

    def active_staff(self) -> List[Staff]:
        return [m for m in self.data_manager.staff if m.is_active]

    def all_staff(self) -> List[Staff]:
        return list(self.data_manager.staff)


class UserDirectory(StaffDirectory):
    """
    Staff taken from user accounts with the ``staff`` role.

    Accounts live in the same storage as the roster but are saved
    separately through ``load_users``/``save_users``.
    """

    def __init__(self, storage, users: Optional[List[User]] = None):
        self.logger = logging.getLogger(__name__)
        self.storage = storage
        self.users: List[User] = list(users) if users is not None else storage.load_users()

    def save_users(self) -> bool:
        return self.storage.save_users(self.users)

    def get_users_by_role(self, role) -> List[User]:
        role = UserRole(role)
        return [u for u in self.users if u.role == role and u.is_active]

    def get_all_users(self) -> List[User]:
        return [u for u in self.users if u.is_active]

    def get_user(self, user_id: int) -> Optional[User]:
        return next((u for u in self.users if u.id == user_id), None)

    def active_staff(self) -> List[Staff]:
        return [u.as_staff() for u in self.get_users_by_role(UserRole.STAFF)]

    def all_staff(self) -> List[Staff]:
        return [u.as_staff() for u in self.users if u.role == UserRole.STAFF]

    def add_user(self, name: str, email: str, role=UserRole.STAFF) -> Optional[User]:
        if any(u.email.lower() == email.lower() for u in self.users):
            self.logger.warning(f"User with email {email} already exists")
            return None

        user = User(
            id=max((u.id for u in self.users), default=0) + 1,
            name=name,
            email=email,
            role=UserRole(role),
            is_active=True,
            created_at=datetime.now(timezone.utc),
        )
        self.users.append(user)
        self.save_users()
        return user

    def update_user(self, user_id: int, updates: Mapping[str, Any]) -> bool:
        """False when the user is unknown or the new email belongs to someone else."""
        for i, user in enumerate(self.users):
            if user.id == user_id:
                changes = {k: v for k, v in updates.items() if k in ('name', 'email', 'is_active')}
                if 'role' in updates:
                    changes['role'] = UserRole(updates['role'])
                email = str(changes.get('email', '')).lower()
                if email and any(u.email.lower() == email for u in self.users if u.id != user_id):
                    self.logger.warning(f"User with email {changes['email']} already exists")
                    return False
                self.users[i] = replace(user, **changes)
                self.save_users()
                return True
        return False

    def deactivate_user(self, user_id: int) -> bool:
        return self.update_user(user_id, {'is_active': False})
