"""
认证工具函数

访问令牌只携带用户ID（sub），文件夹服务据此识别调用者。
"""
from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import JWTError, jwt
from fastapi import Header, HTTPException, status
from app.core.config import settings


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def create_access_token(user_id: int, expires_delta: Optional[timedelta] = None) -> str:
    """
    为用户签发访问令牌

    Args:
        user_id: 用户ID，写入 sub
        expires_delta: 有效期，默认 ACCESS_TOKEN_EXPIRE_MINUTES
    """
    lifetime = expires_delta if expires_delta is not None else timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    claims = {"sub": str(user_id), "exp": datetime.now(timezone.utc) + lifetime}
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_user_id(token: str) -> int:
    """
    校验令牌并取出用户ID

    Raises:
        HTTPException: 令牌无效、过期或 sub 缺失/非整数
    """
    try:
        claims = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        raise _unauthorized("Token无效或已过期")

    subject = claims.get("sub")
    if subject is None:
        raise _unauthorized("Token中未找到用户ID")
    try:
        return int(subject)
    except (TypeError, ValueError):
        raise _unauthorized("Token中的用户ID格式错误")


async def get_current_user_id(authorization: Optional[str] = Header(None)) -> int:
    """
    从 Authorization: Bearer {token} 请求头解析当前用户ID
    """
    if not authorization or not authorization.strip():
        raise _unauthorized("未提供认证信息")

    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise _unauthorized("认证格式错误，应为: Bearer {token}")

    return decode_user_id(token.strip())
