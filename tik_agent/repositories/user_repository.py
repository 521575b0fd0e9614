from datetime import datetime

from sqlalchemy.orm import Session

from tik_agent.models.user import User, UserRole


class UserRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_open_id(self, open_id: str) -> User | None:
        return self.db.query(User).filter(User.open_id == open_id).first()

    def upsert(
        self,
        open_id: str,
        *,
        owner_open_id: str = "",
        last_signed_in: datetime | None = None,
        **profile,
    ) -> User:
        """
        Create or update a user by open id. Only profile fields passed in are written
        (name, email, login_method, role). The configured owner is always admin.
        """
        if not open_id:
            raise ValueError("User open_id is required for upsert")
        if "role" not in profile and owner_open_id and open_id == owner_open_id:
            profile["role"] = UserRole.ADMIN.value

        user = self.get_by_open_id(open_id)
        if user is None:
            user = User(open_id=open_id)
            self.db.add(user)
        for key, value in profile.items():
            setattr(user, key, value)
        user.last_signed_in = last_signed_in or datetime.utcnow()
        self.db.commit()
        self.db.refresh(user)
        return user
