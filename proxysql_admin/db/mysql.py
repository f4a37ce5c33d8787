"""
Выполнение запросов к административному интерфейсу ProxySQL через MySQL-протокол
"""
import logging
import threading
from typing import List, Dict, Any, Tuple

import mysql.connector
from mysql.connector import Error as MySQLError

from proxysql_admin.config import PROXYSQL_ADMIN, CONNECT_TIMEOUT
from proxysql_admin.exceptions import ExecutionError

logger = logging.getLogger(__name__)


class MySQLExecutor:
    """Клиент для выполнения текстовых запросов в админке ProxySQL"""

    def __init__(self, config: Dict[str, Any] = None):
        """Инициализация исполнителя запросов

        Args:
            config: Настройки подключения к админке ProxySQL
        """
        self.config = config or PROXYSQL_ADMIN
        self.connection = None
        # Соединение драйвера нельзя использовать из нескольких потоков одновременно
        self._lock = threading.Lock()

    def connect(self):
        """Устанавливает соединение с ProxySQL"""
        try:
            params = {'connection_timeout': CONNECT_TIMEOUT, **self.config}
            self.connection = mysql.connector.connect(autocommit=True, **params)
            logger.info(f"Подключение к ProxySQL установлено: {self.config['host']}:{self.config['port']}")
        except MySQLError as err:
            logger.error(f"Ошибка подключения к ProxySQL: {err}")
            raise ExecutionError(str(err), errno=getattr(err, 'errno', None)) from err

    def disconnect(self):
        """Закрывает соединение с ProxySQL"""
        if self.connection and self.connection.is_connected():
            self.connection.close()
            logger.info("Соединение с ProxySQL закрыто")
        self.connection = None

    close = disconnect

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.disconnect()

    def _ensure_connected(self):
        if not self.connection or not self.connection.is_connected():
            self.connect()

    def ping(self):
        """Проверяет доступность ProxySQL"""
        with self._lock:
            self._ensure_connected()
            try:
                self.connection.ping(reconnect=False)
            except MySQLError as err:
                logger.error(f"ProxySQL не отвечает: {err}")
                raise ExecutionError(str(err), errno=getattr(err, 'errno', None)) from err

    def execute(self, query: str) -> int:
        """Выполняет запрос без результата

        Args:
            query: Текст запроса

        Returns:
            Количество затронутых строк
        """
        with self._lock:
            self._ensure_connected()
            logger.debug(f"Выполнение запроса: {query}")
            try:
                cursor = self.connection.cursor()
                try:
                    cursor.execute(query)
                    return cursor.rowcount
                finally:
                    cursor.close()
            except MySQLError as err:
                logger.error(f"Ошибка выполнения запроса '{query}': {err}")
                raise ExecutionError(str(err), errno=getattr(err, 'errno', None), detail=query) from err

    def query(self, query: str) -> List[Tuple[Any, ...]]:
        """Выполняет запрос и возвращает все строки результата

        Args:
            query: Текст запроса

        Returns:
            Список строк в порядке колонок таблицы
        """
        with self._lock:
            self._ensure_connected()
            logger.debug(f"Выполнение запроса: {query}")
            try:
                cursor = self.connection.cursor()
                try:
                    cursor.execute(query)
                    return cursor.fetchall()
                finally:
                    cursor.close()
            except MySQLError as err:
                logger.error(f"Ошибка выполнения запроса '{query}': {err}")
                raise ExecutionError(str(err), errno=getattr(err, 'errno', None), detail=query) from err
