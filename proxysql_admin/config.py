"""
Конфигурация клиента администрирования ProxySQL
"""
import os
import re
from typing import Dict, Any

from dotenv import load_dotenv

from proxysql_admin.exceptions import ValidationError

# Загрузка переменных окружения из файла .env
load_dotenv()

# Настройки подключения к административному интерфейсу ProxySQL
PROXYSQL_ADMIN = {
    'host': os.getenv('PROXYSQL_ADMIN_HOST', '127.0.0.1'),
    'port': int(os.getenv('PROXYSQL_ADMIN_PORT', '6032')),
    'user': os.getenv('PROXYSQL_ADMIN_USER', 'admin'),
    'password': os.getenv('PROXYSQL_ADMIN_PASSWORD', 'admin'),
}

# Таймаут подключения в секундах
CONNECT_TIMEOUT = int(os.getenv('PROXYSQL_CONNECT_TIMEOUT', '5'))

# Уровень логирования для командной строки
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')

# user:password@tcp(host:port)/
DSN_PATTERN = re.compile(
    r'^(?P<user>[^:@/]+)(?::(?P<password>[^@]*))?@tcp\((?P<host>[^:()]+):(?P<port>\d+)\)/?$'
)


def parse_dsn(dsn: str) -> Dict[str, Any]:
    """Преобразует DSN вида user:password@tcp(host:port)/ в настройки подключения

    Args:
        dsn: Строка подключения

    Returns:
        Словарь с параметрами подключения
    """
    match = DSN_PATTERN.match(dsn.strip())
    if not match:
        raise ValidationError(f"Некорректный DSN: {dsn!r}", field='dsn')

    port = int(match.group('port'))
    if port > 65535:
        raise ValidationError(f"Некорректный порт в DSN: {port}", field='dsn')

    return {
        'host': match.group('host'),
        'port': port,
        'user': match.group('user'),
        'password': match.group('password') or '',
    }
