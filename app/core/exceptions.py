"""
业务异常定义

服务层只抛出这里的异常，由 main.py 中注册的异常处理器统一转换为 HTTP 响应。
"""
from fastapi import status


class AppError(Exception):
    """业务异常基类"""
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "服务器内部错误"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AppError):
    """参数或业务规则校验失败（名称非法、超出深度、循环移动等）"""
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "请求参数不合法"


class ForbiddenError(AppError):
    """无权执行该操作"""
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "无权执行该操作"


class NotFoundError(AppError):
    """资源不存在"""
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "资源不存在"


class ConflictError(AppError):
    """资源冲突（同级目录下重名等）"""
    status_code = status.HTTP_409_CONFLICT
    default_message = "资源冲突"


class InternalError(AppError):
    """存储层等不可恢复的内部错误"""
