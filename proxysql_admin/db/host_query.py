"""
Построение административных запросов к таблицам mysql_servers

Функции модуля не обращаются к ProxySQL: опции сначала разбираются в HostQuery,
затем HostQuery преобразуется в текст запроса.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Set

from proxysql_admin.exceptions import ValidationError
from proxysql_admin.models.host import (
    COLUMNS, ONLINE, STAGED_TABLE, TABLES, Host, render_value, validate_field,
)
from proxysql_admin.models.host_opts import HostOpt

# Значения по умолчанию для вставки хоста. hostname и port обязательны
DEFAULTS: Dict[str, Any] = {
    'hostgroup_id': 0,
    'gtid_port': 0,
    'status': ONLINE,
    'weight': 1,
    'compression': 0,
    'max_connections': 1000,
    'max_replication_lag': 0,
    'use_ssl': 0,
    'max_latency_ms': 0,
    'comment': '',
}

REQUIRED_FOR_INSERT = ('hostname', 'port')


@dataclass
class HostQuery:
    """Разобранный набор опций

    specified_fields содержит только явно заданные поля, поэтому weight=0
    отличается от незаданного weight.
    """
    table: str = STAGED_TABLE
    specified_fields: Set[str] = field(default_factory=set)
    values: Dict[str, Any] = field(default_factory=dict)

    def set(self, name: str, value: Any) -> None:
        self.specified_fields.add(name)
        self.values[name] = value

    def ordered_fields(self):
        """Заданные поля в порядке колонок таблицы"""
        return [name for name in COLUMNS if name in self.specified_fields]

    def where(self) -> str:
        return ' AND '.join(
            f"{name}={render_value(name, self.values[name])}" for name in self.ordered_fields()
        )


def build_and_parse_host_query(*opts: HostOpt) -> HostQuery:
    """Разбирает опции в HostQuery без обязательных полей

    Используется для фильтров вида "все хосты группы 3". Повторная опция
    для того же поля перезаписывает предыдущую.

    Args:
        opts: Опции поля или таблицы

    Returns:
        Разобранный запрос
    """
    hostq = HostQuery()
    for opt in opts:
        if not isinstance(opt, HostOpt):
            raise ValidationError(f"Неподдерживаемая опция: {opt!r}")

        if opt.is_table:
            if opt.value not in TABLES:
                raise ValidationError(
                    f"Неизвестная таблица {opt.value!r}, допустимы: {', '.join(TABLES)}",
                    field=opt.field,
                )
            hostq.table = opt.value
            continue

        validate_field(opt.field, opt.value)
        hostq.set(opt.field, opt.value)

    return hostq


def build_and_parse_host_query_with_hostname(*opts: HostOpt) -> HostQuery:
    """Разбирает опции для вставки одного хоста

    Требует hostname и port, остальные поля получают значения из DEFAULTS.
    """
    hostq = build_and_parse_host_query(*opts)

    for name in REQUIRED_FOR_INSERT:
        if name not in hostq.specified_fields:
            raise ValidationError(f"Не указано обязательное поле {name}", field=name)

    for name, value in DEFAULTS.items():
        hostq.values.setdefault(name, value)

    return hostq


def build_insert_query(hostq: HostQuery) -> str:
    missing = [name for name in COLUMNS if name not in hostq.values]
    if missing:
        raise ValidationError(
            f"Для вставки не хватает полей: {', '.join(missing)}", field=missing[0]
        )

    columns = ', '.join(COLUMNS)
    values = ', '.join(render_value(name, hostq.values[name]) for name in COLUMNS)
    return f"INSERT INTO {hostq.table} ({columns}) VALUES ({values})"


def build_select_query(hostq: HostQuery) -> str:
    """SELECT по заданным полям, без WHERE если поля не заданы"""
    query = f"SELECT * FROM {hostq.table}"
    if hostq.specified_fields:
        query += f" WHERE {hostq.where()}"
    return query


def build_delete_query(hostq: HostQuery) -> str:
    """DELETE по заданным полям

    Пустой набор полей означает удаление всей таблицы, для этого есть
    build_clear_query.
    """
    if not hostq.specified_fields:
        raise ValidationError("Для удаления нужно указать хотя бы одно поле")
    return f"DELETE FROM {hostq.table} WHERE {hostq.where()}"


def build_update_weight_query(host: Host, weight: int, table: str = STAGED_TABLE) -> str:
    validate_field('weight', weight)
    return f"UPDATE {table} SET weight={render_value('weight', weight)} WHERE {host.where()}"


def build_remove_host_query(host: Host, table: str = STAGED_TABLE) -> str:
    return f"DELETE FROM {table} WHERE {host.where()}"


def build_host_insert_query(host: Host, table: str = STAGED_TABLE) -> str:
    return f"INSERT INTO {table} ({', '.join(host.columns())}) VALUES ({', '.join(host.values())})"


def build_clear_query(table: str = STAGED_TABLE) -> str:
    return f"DELETE FROM {table}"
