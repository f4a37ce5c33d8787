"""
Клиент для управления таблицей mysql_servers ProxySQL

Изменения попадают в подготовленную таблицу mysql_servers и вступают в силу
только после persist_changes().
"""
from typing import Any, Dict, List, Optional

from loguru import logger

from proxysql_admin.db.host_query import (
    build_and_parse_host_query,
    build_and_parse_host_query_with_hostname,
    build_clear_query,
    build_delete_query,
    build_host_insert_query,
    build_insert_query,
    build_remove_host_query,
    build_select_query,
    build_update_weight_query,
)
from proxysql_admin.db.locks import RWLock
from proxysql_admin.db.mysql import MySQLExecutor
from proxysql_admin.exceptions import ValidationError
from proxysql_admin.models.host import Host
from proxysql_admin.models.host_opts import HostOpt

# Строки команд являются частью контракта с ProxySQL
SAVE_TO_DISK = 'save mysql servers to disk'
LOAD_TO_RUNTIME = 'load mysql servers to runtime'


class ProxySQL:
    """Клиент администрирования бэкенд-серверов ProxySQL

    Все изменяющие операции выполняются под эксклюзивной блокировкой,
    чтения под разделяемой. Блокировка принадлежит экземпляру клиента и не
    защищает от изменений из других процессов.
    """

    def __init__(self, executor: Any = None, config: Optional[Dict[str, Any]] = None):
        """Инициализация клиента

        Args:
            executor: Объект с методами execute(query) и query(query),
                по умолчанию MySQLExecutor
            config: Настройки подключения для MySQLExecutor
        """
        self.executor = executor if executor is not None else MySQLExecutor(config)
        self._lock = RWLock()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def ping(self):
        """Проверяет соединение, без блокировки"""
        self.executor.ping()

    def close(self):
        """Закрывает соединение, без блокировки"""
        self.executor.close()

    def conn(self):
        """Возвращает соединение драйвера"""
        return getattr(self.executor, 'connection', None)

    def persist_changes(self):
        """Сохраняет mysql_servers на диск и загружает в runtime

        Если загрузка в runtime завершилась ошибкой, сохранение на диск не
        откатывается.
        """
        with self._lock.write():
            self.executor.execute(SAVE_TO_DISK)
            self.executor.execute(LOAD_TO_RUNTIME)
        logger.info("Конфигурация mysql_servers сохранена и загружена в runtime")

    def add_host(self, *opts: HostOpt):
        """Добавляет хост с указанными параметрами

        hostname и port обязательны, остальные поля берутся по умолчанию.
        """
        with self._lock.write():
            hostq = build_and_parse_host_query_with_hostname(*opts)
            self.executor.execute(build_insert_query(hostq))
        logger.info(f"Добавлен хост {hostq.values['hostname']}:{hostq.values['port']}")

    def add_hosts(self, *hosts: Host):
        """Добавляет хосты по одному

        Все хосты проверяются до первой вставки. При ошибке выполнения уже
        вставленные хосты остаются.
        """
        for host in hosts:
            host.valid()

        with self._lock.write():
            for host in hosts:
                self.executor.execute(build_host_insert_query(host))
        logger.info(f"Добавлено хостов: {len(hosts)}")

    def clear(self):
        """Удаляет все строки из mysql_servers"""
        with self._lock.write():
            self.executor.execute(build_clear_query())
        logger.info("Таблица mysql_servers очищена")

    def update_weight_for_host(self, host: Host, weight: int):
        """Меняет вес строки, полностью совпадающей с host

        Вес host обновляется даже если такой строки в таблице нет.
        """
        host.valid()
        with self._lock.write():
            query = build_update_weight_query(host, weight)
            try:
                self.executor.execute(query)
            finally:
                host.set_weight(weight)

    def remove_host(self, host: Host):
        """Удаляет строку, полностью совпадающую с host"""
        host.valid()
        with self._lock.write():
            self.executor.execute(build_remove_host_query(host))

    def remove_hosts(self, *hosts: Host):
        """Удаляет хосты по одному, останавливаясь на первой ошибке"""
        for host in hosts:
            host.valid()

        with self._lock.write():
            for host in hosts:
                self.executor.execute(build_remove_host_query(host))

    def remove_hosts_like(self, *opts: HostOpt):
        """Удаляет все хосты, подходящие под опции

        Хотя бы одно поле должно быть задано, для полной очистки есть clear().
        """
        with self._lock.write():
            hostq = build_and_parse_host_query(*opts)
            self.executor.execute(build_delete_query(hostq))

    def hosts_like(self, *opts: HostOpt) -> List[Host]:
        """Возвращает хосты, подходящие под опции

        Без полей возвращает всю таблицу.
        """
        with self._lock.read():
            hostq = build_and_parse_host_query(*opts)
            rows = self.executor.query(build_select_query(hostq))
            return [Host.from_row(row) for row in rows]

    def all(self, *opts: HostOpt) -> List[Host]:
        """Возвращает содержимое таблицы

        Допускается только опция table: all() или all(table(RUNTIME_TABLE)).
        """
        hostq = build_and_parse_host_query(*opts)
        if hostq.specified_fields:
            raise ValidationError("Для all() можно указать только таблицу", field='table')

        with self._lock.read():
            rows = self.executor.query(build_select_query(hostq))
            return [Host.from_row(row) for row in rows]
