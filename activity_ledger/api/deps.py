"""
FastAPI dependencies (DB session, authentication, access policy)
"""
from fastapi import Request, HTTPException, status

from activity_ledger.application.access import ReportAccessPolicy
from activity_ledger.infrastructure.db.session import get_db as _get_db


# Re-export get_db для удобства
get_db = _get_db


def get_current_user_id(request: Request) -> int:
    """
    ID текущего пользователя из session

    Raises:
        HTTPException(401): если не залогинен

    Usage:
        @router.get("/reports")
        def list_reports(user_id: int = Depends(get_current_user_id)):
            ...
    """
    user_id = request.session.get("user_id")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated"
        )
    return int(user_id)


def get_access_policy() -> ReportAccessPolicy:
    """Ownership-only policy; the host application may override this dependency."""
    return ReportAccessPolicy()
