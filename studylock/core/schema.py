"""SQLite schema management (code-first approach).

Tables and indexes are declared by feature modules and collected through the
module registry. Statements are idempotent, so init_db() is safe to call on
every startup.
"""

import logging

from studylock.core import db_client, module_registry


logger = logging.getLogger(__name__)


def register_core_modules() -> None:
    """Register the built-in feature modules once."""
    from studylock.modules.notifications import NotificationsModule
    from studylock.modules.tasks import TasksModule

    for module in (TasksModule(), NotificationsModule()):
        if module_registry.get_module(module.name) is None:
            module_registry.register_module(module)


async def init_db(*, db_path: str | None = None) -> None:
    """Create every registered table and index.

    Args:
        db_path: Optional override of the configured database path
    """
    register_core_modules()
    schemas = module_registry.get_all_table_schemas()
    indexes = module_registry.get_all_indexes()

    conn = await db_client.get_connection(db_path=db_path)
    for table_name, statement in schemas.items():
        await conn.execute(statement)
        logger.debug("Ensured table", extra={"table": table_name})
    for statement in indexes:
        await conn.execute(statement)
    await conn.commit()

    logger.info("Database schema initialized", extra={"tables": len(schemas), "indexes": len(indexes)})
