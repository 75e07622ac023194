from datetime import datetime
from typing import Any

from sqlalchemy import Column, DateTime, JSON
from sqlmodel import Field, SQLModel

from app.utils.datetime import utc_now_naive


class SiteSetting(SQLModel, table=True):
    """
    key-value 사이트 설정 (maintenanceMode 등)
    """

    __tablename__ = "site_settings"

    key: str = Field(primary_key=True, max_length=100)

    value: Any = Field(default=None, sa_column=Column(JSON))

    updated_at: datetime = Field(
        default_factory=utc_now_naive,
        sa_column=Column(DateTime(timezone=False), nullable=False),
    )
