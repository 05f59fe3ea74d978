from sqlalchemy.orm import Session
from bizdesk.models.user import User
from bizdesk.models.user_role import UserRole


class UserRepository:
    """Repository for User and UserRole operations"""

    def __init__(self, db: Session):
        self.db = db

    def get_or_create_by_auth_id(self, auth_user_id: str, email: str | None = None) -> User:
        """
        Get user by auth_user_id or create if doesn't exist.

        This is called automatically when a user makes their first API
        request with a valid JWT. The stored email follows the token's.

        Args:
            auth_user_id: User ID from JWT 'sub' claim
            email: Email from JWT 'email' claim, if present

        Returns:
            User object (either existing or newly created)
        """
        user = self.db.query(User).filter(User.auth_user_id == auth_user_id).first()

        if not user:
            user = User(auth_user_id=auth_user_id, email=email)
            self.db.add(user)
            self.db.commit()
            self.db.refresh(user)
        elif email and user.email != email:
            user.email = email
            self.db.commit()
            self.db.refresh(user)

        return user

    def get_by_auth_id(self, auth_user_id: str) -> User | None:
        """Get user by auth_user_id"""
        return self.db.query(User).filter(User.auth_user_id == auth_user_id).first()

    def get_by_id(self, user_id: int) -> User | None:
        """Get user by internal ID"""
        return self.db.query(User).filter(User.id == user_id).first()

    def get_roles(self, user_id: int) -> list[UserRole]:
        """Get a user's role assignments, most recent first"""
        return (
            self.db.query(UserRole)
            .filter(UserRole.user_id == user_id)
            .order_by(UserRole.created_at.desc(), UserRole.id.desc())
            .all()
        )

    def get_role_assignment(self, user_id: int, role: str) -> UserRole | None:
        return (
            self.db.query(UserRole)
            .filter(UserRole.user_id == user_id, UserRole.role == role)
            .first()
        )

    def assign_role(self, user_id: int, role: str) -> UserRole:
        """
        Assign a role to a user.

        Raises:
            IntegrityError: If the user already holds the role
        """
        assignment = UserRole(user_id=user_id, role=role)
        self.db.add(assignment)
        self.db.commit()
        self.db.refresh(assignment)
        return assignment

    def remove_role(self, assignment: UserRole) -> None:
        self.db.delete(assignment)
        self.db.commit()

    def count_role_holders(self, role: str) -> int:
        """Number of users currently assigned the role"""
        return self.db.query(UserRole).filter(UserRole.role == role).count()
