"""
Configuration entry model — operator-editable runtime settings.

Values are stored as text and converted according to ``type`` on read.
Entries flagged ``encrypted`` hold Fernet ciphertext (gateway secrets).
"""

import enum
from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, Integer, String, Text, Enum as SAEnum, event
from sqlalchemy.orm import Mapped, mapped_column

from cashtransfer.database import Base


class ConfigType(str, enum.Enum):
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    JSON = "json"


class Configuration(Base):
    __tablename__ = "configurations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    key: Mapped[str] = mapped_column(String(100), unique=True, index=True, nullable=False)
    value: Mapped[str | None] = mapped_column(Text)
    type: Mapped[ConfigType] = mapped_column(
        SAEnum(ConfigType, name="configtype", values_callable=lambda e: [m.value for m in e]),
        default=ConfigType.STRING,
    )
    encrypted: Mapped[bool] = mapped_column(Boolean, default=False)
    category: Mapped[str] = mapped_column(String(50), default="general")
    description: Mapped[str | None] = mapped_column(Text)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self) -> str:
        return f"<Configuration {self.key} ({self.type.value if self.type else 'N/A'})>"


@event.listens_for(Configuration, "init")
def _set_configuration_defaults(target, args, kwargs):
    if "type" not in kwargs:
        target.type = ConfigType.STRING
    if "encrypted" not in kwargs:
        target.encrypted = False
    if "category" not in kwargs:
        target.category = "general"
