"""
Опции для выборки и описания хостов ProxySQL

Каждая опция задает одно поле хоста либо таблицу, к которой относится запрос:

    proxysql.hosts_like(table(RUNTIME_TABLE), status(OFFLINE_HARD))
"""
from dataclasses import dataclass
from typing import Any

# Виртуальное поле, выбирающее таблицу запроса
TABLE = 'table'


@dataclass(frozen=True)
class HostOpt:
    """Одна именованная опция: поле хоста (или таблица) и его значение"""
    field: str
    value: Any

    @property
    def is_table(self) -> bool:
        return self.field == TABLE


def table(name: str) -> HostOpt:
    """Таблица запроса: mysql_servers или runtime_mysql_servers"""
    return HostOpt(TABLE, name)


def hostgroup_id(value: int) -> HostOpt:
    return HostOpt('hostgroup_id', value)


def hostname(value: str) -> HostOpt:
    return HostOpt('hostname', value)


def port(value: int) -> HostOpt:
    return HostOpt('port', value)


def gtid_port(value: int) -> HostOpt:
    return HostOpt('gtid_port', value)


def status(value: str) -> HostOpt:
    return HostOpt('status', value)


def weight(value: int) -> HostOpt:
    return HostOpt('weight', value)


def compression(value: int) -> HostOpt:
    return HostOpt('compression', value)


def max_connections(value: int) -> HostOpt:
    return HostOpt('max_connections', value)


def max_replication_lag(value: int) -> HostOpt:
    """Максимальное отставание реплики в секундах"""
    return HostOpt('max_replication_lag', value)


def use_ssl(value: int) -> HostOpt:
    return HostOpt('use_ssl', int(value) if isinstance(value, bool) else value)


def max_latency_ms(value: int) -> HostOpt:
    return HostOpt('max_latency_ms', value)


def comment(value: str) -> HostOpt:
    return HostOpt('comment', value)
