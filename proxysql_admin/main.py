"""
Командная строка для управления бэкенд-серверами ProxySQL
"""
import argparse
import json
import logging
import sys
from dataclasses import asdict
from typing import List, Optional

from loguru import logger as loguru_logger

from proxysql_admin.config import LOG_LEVEL, PROXYSQL_ADMIN, parse_dsn
from proxysql_admin.db.proxysql import ProxySQL
from proxysql_admin.exceptions import ProxySQLError
from proxysql_admin.models import host_opts
from proxysql_admin.models.host import COLUMNS, RUNTIME_TABLE, STATUSES, Host

logger = logging.getLogger(__name__)

INT_OPTIONS = [name for name in COLUMNS if name not in ('hostname', 'status', 'comment')]


def add_host_arguments(parser: argparse.ArgumentParser):
    """Добавляет в парсер аргументы для каждого поля хоста"""
    parser.add_argument('--hostname')
    parser.add_argument('--status', choices=STATUSES)
    parser.add_argument('--comment')
    for name in INT_OPTIONS:
        parser.add_argument(f"--{name.replace('_', '-')}", dest=name, type=int)


def opts_from_args(args: argparse.Namespace) -> List[host_opts.HostOpt]:
    """Собирает опции из заданных аргументов в порядке колонок"""
    opts = []
    for name in COLUMNS:
        value = getattr(args, name, None)
        if value is not None:
            opts.append(getattr(host_opts, name)(value))
    return opts


def print_hosts(hosts: List[Host]):
    """Выводит список хостов

    Args:
        hosts: Хосты для отображения
    """
    if not hosts:
        logger.info("Хосты не найдены")
        return

    for host in hosts:
        print(
            f"[{host.hostgroup_id}] {host.hostname}:{host.port} {host.status} "
            f"weight={host.weight} max_connections={host.max_connections} "
            f"max_replication_lag={host.max_replication_lag} {host.comment}".rstrip()
        )
    logger.info(f"Всего хостов: {len(hosts)}")


def hosts_to_json(hosts: List[Host]) -> str:
    return json.dumps([asdict(host) for host in hosts], indent=2)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Управление таблицей mysql_servers в ProxySQL')
    parser.add_argument('--dsn', help='Подключение в виде user:password@tcp(host:port)/')
    commands = parser.add_subparsers(dest='command', required=True)

    list_parser = commands.add_parser('list', help='Показать хосты')
    list_parser.add_argument('--runtime', action='store_true', help='Читать runtime_mysql_servers')
    list_parser.add_argument('--json', action='store_true', help='Вывод в формате JSON')
    add_host_arguments(list_parser)

    add_parser = commands.add_parser('add', help='Добавить хост')
    add_host_arguments(add_parser)

    remove_parser = commands.add_parser('remove', help='Удалить подходящие хосты')
    add_host_arguments(remove_parser)

    weight_parser = commands.add_parser('set-weight', help='Изменить вес подходящих хостов')
    weight_parser.add_argument('--new-weight', dest='new_weight', type=int, required=True)
    add_host_arguments(weight_parser)

    commands.add_parser('clear', help='Очистить mysql_servers')
    commands.add_parser('persist', help='Сохранить на диск и загрузить в runtime')
    return parser


def run(args: argparse.Namespace, proxysql: ProxySQL):
    """Выполняет команду на открытом клиенте"""
    opts = opts_from_args(args)

    if args.command == 'list':
        if args.runtime:
            opts.insert(0, host_opts.table(RUNTIME_TABLE))
        hosts = proxysql.hosts_like(*opts)
        if args.json:
            print(hosts_to_json(hosts))
        else:
            print_hosts(hosts)
    elif args.command == 'add':
        proxysql.add_host(*opts)
    elif args.command == 'remove':
        proxysql.remove_hosts_like(*opts)
    elif args.command == 'set-weight':
        hosts = proxysql.hosts_like(*opts)
        for host in hosts:
            proxysql.update_weight_for_host(host, args.new_weight)
        logger.info(f"Вес изменен для {len(hosts)} хостов")
    elif args.command == 'clear':
        proxysql.clear()
    elif args.command == 'persist':
        proxysql.persist_changes()


def setup_logging(level: str = LOG_LEVEL):
    """Направляет logging и loguru в stdout с одним уровнем"""
    level = level.upper()
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )
    # Клиент ProxySQL пишет через loguru
    loguru_logger.remove()
    loguru_logger.add(
        sys.stdout,
        level=level,
        format="{time:YYYY-MM-DD HH:mm:ss,SSS} - {name} - {level} - {message}",
    )


def main(argv: Optional[List[str]] = None):
    """Основная функция приложения"""
    setup_logging()

    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = parse_dsn(args.dsn) if args.dsn else PROXYSQL_ADMIN
        with ProxySQL(config=config) as proxysql:
            run(args, proxysql)
    except ProxySQLError as e:
        logger.error(f"Ошибка при выполнении команды {args.command}: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
