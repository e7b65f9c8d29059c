from sqlmodel import SQLModel, Field

from app.constants import UserRole


class User(SQLModel, table=True):
    __tablename__ = "users"

    id: str = Field(primary_key=True, max_length=255)
    name: str = Field(index=True, max_length=255)
    password: str = Field(max_length=255)  # bcrypt hash
    role: str = Field(default=UserRole.USER.value, max_length=50)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value
