"""FastAPI dependencies and HTTP error mapping for repo lookups.

    @router.get("/accounts/{account_id}")
    def get_account(account_id: str, repo: RepoDep):
        return fetch_or_404(repo, Account, account_id)
"""

import logging
from typing import Annotated, Any, Optional

from fastapi import Depends, HTTPException, status

from ormkit.core.exceptions import CastError
from ormkit.db.repo import FetchResult, Repo
from ormkit.db.session import DbSession

logger = logging.getLogger(__name__)


def get_repo(db: DbSession) -> Repo:
    """Repo bound to the request's database session."""
    return Repo(db)


# Type alias for dependency injection
RepoDep = Annotated[Repo, Depends(get_repo)]


def _tag_name(tag: Any) -> str:
    return getattr(tag, "__name__", None) or str(tag)


def unwrap_or_404(result: FetchResult, detail: Optional[str] = None) -> Any:
    """Return the fetched record or raise a 404."""
    if result.ok:
        return result.value
    raise HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=detail or f"{_tag_name(result.tag)} not found",
    )


def fetch_or_404(repo: Repo, model: Any, ident: Any, detail: Optional[str] = None, **opts: Any) -> Any:
    """Fetch by primary key, answering 400 for a malformed id and 404 for a missing row."""
    try:
        result = repo.fetch(model, ident, raise_on_cast_error=True, **opts)
    except CastError as e:
        logger.info(f"Rejected malformed identifier: {e.message}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    return unwrap_or_404(result, detail)
