"""Shared API dependencies for authentication and service wiring."""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from qsys.core.security import Account, decode_access_token
from qsys.db.session import get_session_factory
from qsys.services.branch_resolver import BranchResolver, ResolvedBranch
from qsys.services.display import DisplayService
from qsys.services.queue_service import QueueService

# HTTP Bearer scheme for JWT authentication; missing headers are answered with 401 below
bearer_scheme = HTTPBearer(auto_error=False)

SessionFactoryDep = Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)]


def get_queue_service(session_factory: SessionFactoryDep) -> QueueService:
    """Build the queue facade on the request's session factory."""
    return QueueService(session_factory)


def get_display_service(session_factory: SessionFactoryDep) -> DisplayService:
    return DisplayService(session_factory)


QueueServiceDep = Annotated[QueueService, Depends(get_queue_service)]
DisplayServiceDep = Annotated[DisplayService, Depends(get_display_service)]


async def get_branch(branch_code: str, session_factory: SessionFactoryDep) -> ResolvedBranch:
    """Resolve the ``branch_code`` path parameter, a slug or a code in any case.

    Raises:
        UnknownBranchError: If neither the parameter nor the default branch exists.
    """
    return await BranchResolver(session_factory).resolve(branch_code)


BranchDep = Annotated[ResolvedBranch, Depends(get_branch)]


def get_current_account(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> Account:
    """Get the authenticated staff or admin account from the bearer token.

    Raises:
        HTTPException: 401 if the token is missing or invalid.
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        return decode_access_token(credentials.credentials)
    except JWTError as err:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        ) from err


CurrentAccountDep = Annotated[Account, Depends(get_current_account)]


def require_staff(account: CurrentAccountDep, branch: BranchDep) -> Account:
    """Allow staff of the route's branch and any admin.

    Membership is checked against the canonical code, so a slug in the path
    is judged the same as the code it resolves to.

    Raises:
        HTTPException: 403 if the account may not operate this branch.
    """
    if not account.can_operate(branch.code):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not allowed to operate this branch",
        )
    return account


def require_admin(account: CurrentAccountDep) -> Account:
    """Allow admins only."""
    if not account.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin role required",
        )
    return account


StaffDep = Annotated[Account, Depends(require_staff)]
AdminDep = Annotated[Account, Depends(require_admin)]
