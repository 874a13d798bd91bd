from sqlalchemy.orm import Session

from notestack.errors import DuplicateError, NotFoundOrForbidden, ValidationError
from notestack.models.user import User

PROFILE_FIELDS = ("email", "display_name", "avatar_url")


def _profile_dict(user: User) -> dict:
    return {
        "id": user.id,
        "email": user.email,
        "display_name": user.display_name,
        "avatar_url": user.avatar_url,
        "created_at": user.created_at,
    }


class UserService:
    @staticmethod
    def _load(db: Session, user_id: int) -> User:
        user = db.get(User, user_id)
        if user is None:
            raise NotFoundOrForbidden("User")
        return user

    @staticmethod
    def get_profile(db: Session, user_id: int) -> dict:
        return _profile_dict(UserService._load(db, user_id))

    @staticmethod
    def update_profile(db: Session, user_id: int, data: dict) -> dict:
        """Only the caller's own row; email stays required and unique."""
        user = UserService._load(db, user_id)
        if "email" in data:
            email = (data["email"] or "").strip().lower()
            if not email or "@" not in email:
                raise ValidationError("A valid email is required")
            taken = db.query(User.id).filter(User.email == email, User.id != user.id).first()
            if taken:
                raise DuplicateError("Email is already in use")
        try:
            if "email" in data:
                user.email = email
            if "display_name" in data:
                user.display_name = (data["display_name"] or "").strip() or None
            if "avatar_url" in data:
                user.avatar_url = data["avatar_url"] or None
            db.commit()
            db.refresh(user)
        except Exception:
            db.rollback()
            raise
        return _profile_dict(user)
