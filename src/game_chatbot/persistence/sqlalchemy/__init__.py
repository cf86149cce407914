from .db import build_engine, build_session_factory, create_schema, database_url
from .uow import SQLAlchemyUnitOfWork

__all__ = ["build_engine", "build_session_factory", "create_schema", "database_url", "SQLAlchemyUnitOfWork"]
