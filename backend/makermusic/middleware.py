import logging
from collections.abc import Callable, Iterator

from fastapi import Depends, Header, Request
from sqlalchemy.orm import Session

from .context import AppContext
from .errors import AuthenticationError, AuthorizationError
from .models import UserRole
from .security import SessionClaims, TokenError

logger = logging.getLogger(__name__)


def get_context(request: Request) -> AppContext:
    return request.app.state.context


def get_db_session(context: AppContext = Depends(get_context)) -> Iterator[Session]:
    db = context.session_factory()
    try:
        yield db
    finally:
        db.close()


def _parse_token(auth_header: str | None) -> str:
    if not auth_header:
        raise AuthenticationError("Acesso negado. Nenhum token fornecido.")
    parts = auth_header.split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer" or not parts[1].strip():
        raise AuthenticationError("Formato de token inválido.")
    return parts[1].strip()


def get_current_user(
    authorization: str | None = Header(default=None, alias="Authorization"),
    context: AppContext = Depends(get_context),
) -> SessionClaims:
    token = _parse_token(authorization)
    try:
        return context.tokens.verify(token)
    except TokenError as exc:
        logger.info(f"Rejected token: {exc}")
        raise AuthenticationError("Token inválido ou expirado.") from exc


def require_roles(*allowed_roles: UserRole) -> Callable:
    def dependency(current_user: SessionClaims = Depends(get_current_user)) -> SessionClaims:
        if current_user.role not in allowed_roles:
            logger.warning(
                f"Access denied for user {current_user.user_id} ({current_user.role.value}); "
                f"requires one of {[role.value for role in allowed_roles]}"
            )
            raise AuthorizationError("Acesso proibido.")
        return current_user

    return dependency
