"""
文件夹名称校验
"""
from app.core.exceptions import ValidationError

FOLDER_NAME_MAX_LENGTH = 255

# 文件夹名中不允许出现的字符
FORBIDDEN_FOLDER_CHARS = ("/", "\\", ":", "*", "?", "\"", "<", ">", "|")

RESERVED_FOLDER_NAMES = (".", "..")


def validate_folder_name(name: str) -> str:
    """
    校验并规范化文件夹名称

    规则：去除首尾空白后不能为空，不能是 "." 或 ".."，
    长度不超过255个字符，不能包含路径分隔符等禁止字符。

    Args:
        name: 原始名称

    Returns:
        str: 去除首尾空白后的名称

    Raises:
        ValidationError: 名称不合法
    """
    trimmed = (name or "").strip()

    if not trimmed:
        raise ValidationError("文件夹名称不能为空")

    if trimmed in RESERVED_FOLDER_NAMES:
        raise ValidationError("文件夹名称为保留名称")

    if len(trimmed) > FOLDER_NAME_MAX_LENGTH:
        raise ValidationError(f"文件夹名称不能超过{FOLDER_NAME_MAX_LENGTH}个字符")

    for char in FORBIDDEN_FOLDER_CHARS:
        if char in trimmed:
            raise ValidationError(f"文件夹名称不能包含字符: {char}")

    return trimmed
