"""
User settings store. Saving is a single INSERT ... ON CONFLICT / ON DUPLICATE KEY UPDATE
keyed on user_id, so concurrent saves for one user cannot create two rows.
"""
from datetime import datetime
from typing import Any

from sqlalchemy.orm import Session

from tik_agent.models.user_settings import UserSettings


def _upsert_statement(dialect_name: str, values: dict[str, Any], update_values: dict[str, Any]):
    if dialect_name == "mysql":
        from sqlalchemy.dialects.mysql import insert

        return insert(UserSettings).values(**values).on_duplicate_key_update(**update_values)
    if dialect_name == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    elif dialect_name == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
    else:
        raise NotImplementedError(f"Settings upsert not supported for dialect {dialect_name!r}")
    return insert(UserSettings).values(**values).on_conflict_do_update(
        index_elements=[UserSettings.user_id],
        set_=update_values,
    )


class SettingsRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, user_id: int) -> UserSettings | None:
        return self.db.query(UserSettings).filter(UserSettings.user_id == user_id).first()

    def upsert(self, user_id: int, **fields) -> UserSettings:
        """Write only the given fields; missing row is created with column defaults."""
        now = datetime.utcnow()
        update_values = {**fields, "updated_at": now}
        stmt = _upsert_statement(
            self.db.get_bind().dialect.name,
            values={"user_id": user_id, **fields, "created_at": now, "updated_at": now},
            update_values=update_values,
        )
        self.db.execute(stmt)
        self.db.commit()
        self.db.expire_all()
        return self.get(user_id)
