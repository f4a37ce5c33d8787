"""
Модель строки таблицы mysql_servers ProxySQL
"""
from dataclasses import dataclass
from typing import Any, Sequence, Tuple

from mysql.connector.conversion import MySQLConverter

from proxysql_admin.exceptions import ValidationError

# Таблица с подготовленной (ещё не активной) конфигурацией
STAGED_TABLE = 'mysql_servers'
# Таблица с активной конфигурацией
RUNTIME_TABLE = 'runtime_mysql_servers'
TABLES = (STAGED_TABLE, RUNTIME_TABLE)

ONLINE = 'ONLINE'
OFFLINE_SOFT = 'OFFLINE_SOFT'
OFFLINE_HARD = 'OFFLINE_HARD'
SHUNNED = 'SHUNNED'
STATUSES = (ONLINE, OFFLINE_SOFT, OFFLINE_HARD, SHUNNED)

# Порядок колонок совпадает с порядком в таблице mysql_servers
COLUMNS = (
    'hostgroup_id',
    'hostname',
    'port',
    'gtid_port',
    'status',
    'weight',
    'compression',
    'max_connections',
    'max_replication_lag',
    'use_ssl',
    'max_latency_ms',
    'comment',
)

STRING_COLUMNS = frozenset(('hostname', 'status', 'comment'))

# ProxySQL хранит административные таблицы в SQLite, обратный слэш не экранирует
_SQL_MODE = 'NO_BACKSLASH_ESCAPES'
_converter = MySQLConverter()


def validate_field(name: str, value: Any) -> None:
    """Проверяет значение одного поля хоста

    Args:
        name: Имя колонки
        value: Проверяемое значение
    """
    if name not in COLUMNS:
        raise ValidationError(f"Неизвестное поле хоста: {name!r}", field=name)

    if name in STRING_COLUMNS:
        if not isinstance(value, str):
            raise ValidationError(f"Поле {name} должно быть строкой, получено {value!r}", field=name)
        if '\x00' in value:
            raise ValidationError(f"Поле {name} содержит нулевой символ", field=name)
        if name == 'hostname' and not value:
            raise ValidationError("Имя хоста не может быть пустым", field=name)
        if name == 'status' and value not in STATUSES:
            raise ValidationError(
                f"Неизвестный статус {value!r}, допустимы: {', '.join(STATUSES)}", field=name
            )
        return

    if not isinstance(value, int) or (isinstance(value, bool) and name != 'use_ssl'):
        raise ValidationError(f"Поле {name} должно быть целым числом, получено {value!r}", field=name)
    if value < 0:
        raise ValidationError(f"Поле {name} не может быть отрицательным: {value}", field=name)
    if name == 'port' and value > 65535:
        raise ValidationError(f"Порт вне диапазона 0-65535: {value}", field=name)
    if name == 'use_ssl' and value not in (0, 1):
        raise ValidationError(f"use_ssl принимает только 0 или 1: {value}", field=name)


def render_value(name: str, value: Any) -> str:
    """Преобразует проверенное значение поля в SQL-литерал"""
    if name in STRING_COLUMNS:
        return "'{}'".format(_converter.escape(value, _SQL_MODE))
    return str(int(value))


@dataclass
class Host:
    """Бэкенд-сервер из таблицы mysql_servers"""
    hostgroup_id: int
    hostname: str
    port: int
    gtid_port: int
    status: str
    weight: int
    compression: int
    max_connections: int
    max_replication_lag: int
    use_ssl: int
    max_latency_ms: int
    comment: str

    @classmethod
    def from_row(cls, row: Sequence[Any]) -> 'Host':
        """Создает хост из строки результата SELECT * FROM mysql_servers"""
        if len(row) != len(COLUMNS):
            raise ValidationError(
                f"Ожидалось {len(COLUMNS)} колонок, получено {len(row)}", detail=repr(row)
            )

        values = {}
        for name, value in zip(COLUMNS, row):
            try:
                if isinstance(value, (bytes, bytearray)):
                    value = value.decode('utf-8')
                if name in STRING_COLUMNS:
                    values[name] = '' if value is None else str(value)
                else:
                    values[name] = int(value)
            except (UnicodeDecodeError, TypeError, ValueError) as err:
                raise ValidationError(
                    f"Некорректное значение колонки {name}: {value!r}", field=name, detail=repr(row)
                ) from err
        return cls(**values)

    def valid(self) -> None:
        """Проверяет все поля хоста, выбрасывает ValidationError для первого некорректного"""
        for name in COLUMNS:
            validate_field(name, getattr(self, name))

    def columns(self) -> Tuple[str, ...]:
        return COLUMNS

    def values(self) -> Tuple[str, ...]:
        """SQL-литералы всех полей в порядке columns()"""
        return tuple(render_value(name, getattr(self, name)) for name in COLUMNS)

    def where(self) -> str:
        """Условие точного совпадения по всем 12 полям.

        Первичного ключа у mysql_servers нет, поэтому строка считается той же
        самой только при совпадении каждого поля.
        """
        return ' AND '.join(
            f"{name}={literal}" for name, literal in zip(COLUMNS, self.values())
        )

    def set_weight(self, weight: int) -> None:
        self.weight = weight
