# vdc/models/api_user.py
from sqlalchemy import Column, Integer, String
from vdc.database import Base


class ApiUser(Base):
    __tablename__ = "api_user"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(100), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    api_key_status = Column(Integer, default=1, nullable=False)   # 1 = active

    def __repr__(self):
        return f"<ApiUser {self.username} status={self.api_key_status}>"
