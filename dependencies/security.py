from typing import Optional, Annotated
from fastapi import Depends, Header, HTTPException

from services.backend_client import BackendClient
from services.report_loader import SelectionGuard, guard_registry

AuthHeader = Annotated[Optional[str], Header(alias="Authorization")]


def require_bearer_token(authorization: AuthHeader = None) -> str:
    # 토큰 검증은 백엔드 몫. 여기서는 형식만 확인하고 그대로 전달
    if not authorization:
        raise HTTPException(
            status_code=401,
            detail="Missing Authorization header",
            headers={"WWW-Authenticate": "Bearer"},
        )

    # "Bearer <token>" 파싱
    try:
        scheme, token = authorization.split(" ", 1)
    except ValueError:
        raise HTTPException(
            status_code=401,
            detail="Invalid Authorization header format",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if scheme.lower() != "bearer" or not token.strip():
        raise HTTPException(
            status_code=401,
            detail="Invalid auth scheme",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return token.strip()


def get_backend_client(token: str = Depends(require_bearer_token)) -> BackendClient:
    """요청마다 호출자 토큰을 실은 백엔드 클라이언트"""
    return BackendClient(token=token)


def selection_guard(scope: str):
    """같은 교사의 같은 종류 보고서 요청끼리 공유하는 SelectionGuard (늦게 끝난 이전 요청은 409)"""

    def _guard(token: str = Depends(require_bearer_token)) -> SelectionGuard:
        return guard_registry.get(token, scope)

    return _guard
