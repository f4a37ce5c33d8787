"""
Исключения клиента ProxySQL
"""
from typing import Optional


class ProxySQLError(Exception):
    """Базовое исключение клиента"""

    def __init__(self, message: str, detail: Optional[str] = None):
        self.message = message
        self.detail = detail
        super().__init__(message)


class ValidationError(ProxySQLError):
    """Некорректное поле хоста или недопустимая комбинация опций.

    Всегда возникает до обращения к ProxySQL.
    """

    def __init__(self, message: str, field: Optional[str] = None, detail: Optional[str] = None):
        self.field = field
        super().__init__(message, detail)


class ExecutionError(ProxySQLError):
    """Ошибка выполнения запроса драйвером MySQL"""

    def __init__(self, message: str, errno: Optional[int] = None, detail: Optional[str] = None):
        self.errno = errno
        super().__init__(message, detail)
