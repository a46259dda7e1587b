# =======================================================================================
# lockmaster/api/dependencies.py - FastAPI Dependencies
# =======================================================================================
from fastapi import Depends, HTTPException
from sqlalchemy.engine import Connection
from sqlalchemy.exc import SQLAlchemyError
from ..database import db_manager
from ..services.entity_client import Entities
from ..services.sync_service import TTLockSyncService

# vendor session and operation state outlive single requests
sync_service = TTLockSyncService()

def get_db_connection() -> Connection:
    """Dependency to get database connection."""
    try:
        with db_manager.get_connection() as conn:
            yield conn
    except SQLAlchemyError as e:
        raise HTTPException(status_code=500, detail=f"Database connection error: {str(e)}")

def get_entities(conn: Connection = Depends(get_db_connection)) -> Entities:
    """Repositories bound to the request's transaction."""
    return Entities(conn)

def get_sync_service() -> TTLockSyncService:
    return sync_service
