from typing import Any, Optional


class SqlgenError(Exception):
    """Базовое исключение пакета."""


class ConfigError(SqlgenError):
    pass


class UnsupportedDialectError(SqlgenError):
    def __init__(self, dialect: str):
        super().__init__(f"Unsupported SQL dialect: {dialect!r}")
        self.dialect = dialect


class ApiError(SqlgenError):
    """
    Ошибка HTTP-вызова к бэкенду.
    status=None означает сетевую ошибку (ответа не было).
    """

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        status_text: Optional[str] = None,
        data: Any = None,
    ):
        super().__init__(message)
        self.message = message
        self.status = status
        self.status_text = status_text
        self.data = data

    @property
    def is_unauthorized(self) -> bool:
        return self.status == 401


class QueryExecutionError(SqlgenError):
    def __init__(self, message: str, sql: Optional[str] = None):
        super().__init__(message)
        self.sql = sql


class ExportError(SqlgenError):
    pass


class GenerationError(SqlgenError):
    pass
