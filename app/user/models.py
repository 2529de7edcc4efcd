from sqlalchemy import Column, Integer, String, DateTime, Boolean, SmallInteger, ForeignKey
from ..core.database import Base, TimestampMixin, SoftDeleteMixin

USER_STATUS_ACTIVE = 1
USER_STATUS_DISABLED = 0


class User(Base, TimestampMixin, SoftDeleteMixin):
    __tablename__ = "users"
    user_id = Column(Integer, primary_key=True, index=True)
    username = Column(String(50), unique=True, nullable=False)
    password = Column(String(255), nullable=False)
    phone = Column(String(20), unique=True, nullable=True)
    email = Column(String(100), unique=True, nullable=True)
    nickname = Column(String(50))
    avatar = Column(String(255))
    role = Column(String(20), default="user", nullable=False)
    status = Column(SmallInteger, default=USER_STATUS_ACTIVE, nullable=False)
    last_login_at = Column(DateTime, nullable=True)

    @property
    def is_active(self) -> bool:
        return self.status == USER_STATUS_ACTIVE


class Address(Base, TimestampMixin, SoftDeleteMixin):
    __tablename__ = "addresses"
    address_id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.user_id"), nullable=False, index=True)
    name = Column(String(50), nullable=False)
    phone = Column(String(20), nullable=False)
    province = Column(String(50), nullable=False)
    city = Column(String(50), nullable=False)
    district = Column(String(50), nullable=False)
    detail = Column(String(255), nullable=False)
    postcode = Column(String(10))
    tag = Column(String(20))
    is_default = Column(Boolean, default=False, nullable=False)
