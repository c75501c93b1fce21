from typing import Optional

from sqlalchemy.orm import Session

from models.users import User as UserModel


def find_user_by_id(db: Session, user_id: int) -> Optional[UserModel]:
    return db.query(UserModel).filter(UserModel.id == user_id).first()
