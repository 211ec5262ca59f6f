from __future__ import annotations

import logging
from typing import Optional

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone, run_db
from .permissions import RoleDirectory

logger = logging.getLogger(__name__)


class MySQLRoleDirectory(RoleDirectory):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    async def role_for(self, actor_id: str) -> Optional[Role]:
        return await run_db(self._role_for, actor_id)

    def _role_for(self, actor_id: str) -> Optional[Role]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT role FROM profiles WHERE id=%s", (actor_id,))
            row = fetchone(cur)
        if not row:
            return None
        try:
            return Role(row["role"])
        except ValueError:
            logger.warning("profile %s has unknown role %r", actor_id, row["role"])
            return None
