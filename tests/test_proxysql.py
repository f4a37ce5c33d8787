"""
Тесты клиента ProxySQL с подмененным исполнителем запросов
"""
import os
import sys
import threading
import time
import unittest
from unittest.mock import MagicMock, call

# Добавляем путь к основному приложению
sys.path.insert(0, os.path.abspath(os.path.dirname(os.path.dirname(__file__))))

from proxysql_admin.db.proxysql import LOAD_TO_RUNTIME, SAVE_TO_DISK, ProxySQL
from proxysql_admin.exceptions import ExecutionError, ValidationError
from proxysql_admin.models.host import RUNTIME_TABLE, Host
from proxysql_admin.models.host_opts import hostgroup_id, hostname, port, status, table, weight


def make_host(**overrides) -> Host:
    values = dict(
        hostgroup_id=1, hostname='db1', port=3306, gtid_port=0, status='ONLINE', weight=10,
        compression=0, max_connections=1000, max_replication_lag=5, use_ssl=0, max_latency_ms=0,
        comment='',
    )
    values.update(overrides)
    return Host(**values)


ROW = (1, 'db1', 3306, 0, 'ONLINE', 10, 0, 1000, 5, 0, 0, '')


class TestProxySQL(unittest.TestCase):
    """Тесты для операций ProxySQL"""

    def setUp(self):
        """Настройка перед тестами"""
        self.executor = MagicMock()
        self.executor.execute.return_value = 1
        self.executor.query.return_value = []
        self.proxysql = ProxySQL(executor=self.executor)

    def executed(self):
        return [c.args[0] for c in self.executor.execute.call_args_list]

    def test_add_host(self):
        """Вставка содержит значения по умолчанию"""
        self.proxysql.add_host(hostname('db1'), port(3306))
        query, = self.executed()
        self.assertTrue(query.startswith("INSERT INTO mysql_servers (hostgroup_id, hostname, port,"))
        self.assertIn("VALUES (0, 'db1', 3306, 0, 'ONLINE', 1, 0, 1000, 0, 0, 0, '')", query)

    def test_add_host_without_hostname(self):
        with self.assertRaises(ValidationError):
            self.proxysql.add_host(port(3306))
        self.executor.execute.assert_not_called()

    def test_add_hosts_validates_before_insert(self):
        """Один некорректный хост отменяет всю вставку"""
        hosts = [make_host(), make_host(port=99999), make_host(hostname='db3')]
        with self.assertRaises(ValidationError):
            self.proxysql.add_hosts(*hosts)
        self.executor.execute.assert_not_called()

    def test_add_hosts_stops_at_first_error(self):
        """Вставленные до ошибки хосты остаются"""
        self.executor.execute.side_effect = [1, ExecutionError('duplicate'), 1]
        hosts = [make_host(), make_host(hostname='db2'), make_host(hostname='db3')]
        with self.assertRaises(ExecutionError):
            self.proxysql.add_hosts(*hosts)
        self.assertEqual(self.executor.execute.call_count, 2)
        self.assertIn("'db1'", self.executed()[0])

    def test_update_weight_for_host(self):
        """Вес хоста в памяти обновляется после запроса"""
        host = make_host(weight=10)
        expected_where = host.where()
        self.proxysql.update_weight_for_host(host, 50)
        self.assertEqual(self.executed(), [f"UPDATE mysql_servers SET weight=50 WHERE {expected_where}"])
        self.assertEqual(host.weight, 50)

    def test_update_weight_when_row_missing(self):
        """Вес меняется даже если строка не найдена или запрос упал"""
        self.executor.execute.side_effect = ExecutionError('gone')
        host = make_host(weight=10)
        with self.assertRaises(ExecutionError):
            self.proxysql.update_weight_for_host(host, 50)
        self.assertEqual(host.weight, 50)

    def test_update_weight_invalid(self):
        host = make_host(weight=10)
        with self.assertRaises(ValidationError):
            self.proxysql.update_weight_for_host(host, -1)
        self.assertEqual(host.weight, 10)
        self.executor.execute.assert_not_called()

    def test_remove_host(self):
        host = make_host()
        self.proxysql.remove_host(host)
        self.assertEqual(self.executed(), [f"DELETE FROM mysql_servers WHERE {host.where()}"])

    def test_remove_hosts_stops_at_first_error(self):
        self.executor.execute.side_effect = ExecutionError('failed')
        with self.assertRaises(ExecutionError):
            self.proxysql.remove_hosts(make_host(), make_host(hostname='db2'))
        self.assertEqual(self.executor.execute.call_count, 1)

    def test_remove_hosts_like(self):
        self.proxysql.remove_hosts_like(hostgroup_id(3))
        self.assertEqual(self.executed(), ["DELETE FROM mysql_servers WHERE hostgroup_id=3"])

    def test_remove_hosts_like_without_fields(self):
        """Удаление без полей запрещено"""
        with self.assertRaises(ValidationError):
            self.proxysql.remove_hosts_like()
        with self.assertRaises(ValidationError):
            self.proxysql.remove_hosts_like(table(RUNTIME_TABLE))
        self.executor.execute.assert_not_called()

    def test_hosts_like(self):
        self.executor.query.return_value = [ROW]
        hosts = self.proxysql.hosts_like(table(RUNTIME_TABLE), status('OFFLINE_HARD'))
        self.executor.query.assert_called_once_with(
            "SELECT * FROM runtime_mysql_servers WHERE status='OFFLINE_HARD'"
        )
        self.assertEqual(hosts, [make_host()])

    def test_hosts_like_without_fields(self):
        self.proxysql.hosts_like()
        self.executor.query.assert_called_once_with("SELECT * FROM mysql_servers")

    def test_all(self):
        self.executor.query.return_value = [ROW, ROW]
        hosts = self.proxysql.all(table(RUNTIME_TABLE))
        self.executor.query.assert_called_once_with("SELECT * FROM runtime_mysql_servers")
        self.assertEqual(len(hosts), 2)
        self.assertIsNot(hosts[0], hosts[1])

    def test_all_rejects_field_options(self):
        with self.assertRaises(ValidationError):
            self.proxysql.all(table(RUNTIME_TABLE), weight(1))
        self.executor.query.assert_not_called()

    def test_clear(self):
        self.proxysql.clear()
        self.assertEqual(self.executed(), ["DELETE FROM mysql_servers"])

    def test_persist_changes(self):
        self.proxysql.persist_changes()
        self.assertEqual(self.executor.execute.call_args_list, [call(SAVE_TO_DISK), call(LOAD_TO_RUNTIME)])
        self.assertEqual(SAVE_TO_DISK, 'save mysql servers to disk')
        self.assertEqual(LOAD_TO_RUNTIME, 'load mysql servers to runtime')

    def test_persist_changes_stops_after_failed_save(self):
        self.executor.execute.side_effect = ExecutionError('disk full')
        with self.assertRaises(ExecutionError):
            self.proxysql.persist_changes()
        self.assertEqual(self.executed(), [SAVE_TO_DISK])

    def test_persist_changes_failed_load(self):
        """Ошибка загрузки в runtime не откатывает сохранение"""
        self.executor.execute.side_effect = [0, ExecutionError('load failed')]
        with self.assertRaises(ExecutionError):
            self.proxysql.persist_changes()
        self.assertEqual(self.executed(), [SAVE_TO_DISK, LOAD_TO_RUNTIME])

    def test_ping_close_conn(self):
        self.proxysql.ping()
        self.executor.ping.assert_called_once_with()
        self.assertIs(self.proxysql.conn(), self.executor.connection)
        with self.proxysql:
            pass
        self.executor.close.assert_called_once_with()

    def test_lock_released_after_error(self):
        """После ошибки блокировка освобождается"""
        self.executor.execute.side_effect = ExecutionError('failed')
        with self.assertRaises(ExecutionError):
            self.proxysql.clear()
        self.executor.execute.side_effect = None

        done = threading.Event()

        def worker():
            self.proxysql.clear()
            done.set()

        thread = threading.Thread(target=worker)
        thread.start()
        thread.join(timeout=5)
        self.assertTrue(done.is_set())

    def run_batch_with_concurrent_read(self, batch, hosts):
        """Запускает пакетную операцию и чтение посреди нее, возвращает порядок запросов"""
        calls = []
        started = threading.Event()

        def slow_execute(query):
            calls.append(query.split()[0])
            started.set()
            time.sleep(0.05)
            return 1

        def record_query(query):
            calls.append(query.split()[0])
            return []

        self.executor.execute.side_effect = slow_execute
        self.executor.query.side_effect = record_query

        thread = threading.Thread(target=batch, args=hosts)
        thread.start()
        self.assertTrue(started.wait(timeout=5))
        self.proxysql.hosts_like()
        thread.join(timeout=5)
        return calls

    def test_add_hosts_holds_lock_for_batch(self):
        """Чтение не вклинивается в пакетную вставку"""
        hosts = [make_host(hostname=f'db{i}') for i in range(3)]
        calls = self.run_batch_with_concurrent_read(self.proxysql.add_hosts, hosts)
        self.assertEqual(calls, ['INSERT', 'INSERT', 'INSERT', 'SELECT'])

    def test_remove_hosts_holds_lock_for_batch(self):
        """Чтение не вклинивается в пакетное удаление"""
        hosts = [make_host(hostname=f'db{i}') for i in range(3)]
        calls = self.run_batch_with_concurrent_read(self.proxysql.remove_hosts, hosts)
        self.assertEqual(calls, ['DELETE', 'DELETE', 'DELETE', 'SELECT'])


if __name__ == "__main__":
    unittest.main()
