from sqlalchemy import select

from app.importflow.db.models import User


class UserRepository:
    def __init__(self, db):
        self.db = db

    def get_by_id(self, user_id: str) -> User | None:
        return self.db.get(User, user_id)

    def list_active(self) -> list[User]:
        return self.db.execute(select(User).where(User.is_active.is_(True)).order_by(User.username)).scalars().all()

    def create(self, user: User) -> User:
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user
