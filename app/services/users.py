from typing import Optional, List

from sqlmodel import Session, select, or_

from ..core.security import verify_password
from ..models import User


def get_user(session: Session, user_id: str) -> Optional[User]:
    return session.get(User, user_id)


def authenticate_user(session: Session, username: str, password: str) -> Optional[User]:
    """
    Looks up a user by name or id and checks the password.

    Returns:
        The user, or None when no account matches or the password is wrong
    """
    user = session.exec(
        select(User).where(or_(User.name == username, User.id == username))
    ).first()

    if user is None or not verify_password(password, user.password):
        return None
    return user


def list_users(session: Session) -> List[User]:
    return list(session.exec(select(User).order_by(User.id)).all())
