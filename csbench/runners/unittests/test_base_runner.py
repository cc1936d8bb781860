import asyncio
import unittest
from unittest.mock import AsyncMock, MagicMock, patch

from csbench.runners._base_runner import ExecutorComponent, RunStatus


class RecordingExecutor(ExecutorComponent):
    def __init__(self, init_error=None, workload_error=None, workload_delay=0):
        super().__init__()
        self.calls = []
        self.init_error = init_error
        self.workload_error = workload_error
        self.workload_delay = workload_delay

    async def initialize(self, cancellation):
        self.calls.append(('initialize', self.status))
        if self.init_error:
            raise self.init_error

    async def execute_workload(self, cancellation):
        self.calls.append(('execute_workload', self.status))
        self.cleanup_tasks.append(lambda: self.calls.append(('cleanup', 1)))
        self.cleanup_tasks.append(lambda: self.calls.append(('cleanup', 2)))
        if self.workload_delay:
            await asyncio.sleep(self.workload_delay)
        if self.workload_error:
            raise self.workload_error


@patch('csbench.runners._base_runner.send_exit_notification', new_callable=AsyncMock)
class TestExecutorLifecycle(unittest.IsolatedAsyncioTestCase):
    async def test_successful_run(self, mock_notify):
        executor = RecordingExecutor()
        self.assertEqual(executor.status, RunStatus.CREATED)
        status = await executor.execute(asyncio.Event())
        self.assertEqual(status, RunStatus.COMPLETED)
        self.assertEqual(
            executor.calls,
            [
                ('initialize', RunStatus.INITIALIZING),
                ('execute_workload', RunStatus.EXECUTING),
                ('cleanup', 1),
                ('cleanup', 2),
            ],
        )
        self.assertEqual(executor.cleanup_tasks, [])

    async def test_initialize_error_fails_run(self, mock_notify):
        executor = RecordingExecutor(init_error=ValueError('bad config'))
        executor.register_exit_notification('X.ExitNotification', MagicMock())
        with self.assertRaises(ValueError):
            await executor.execute(asyncio.Event())
        self.assertEqual(executor.status, RunStatus.FAILED)
        self.assertNotIn('execute_workload', [c[0] for c in executor.calls])
        mock_notify.assert_awaited_once()

    async def test_workload_error_runs_cleanup(self, mock_notify):
        executor = RecordingExecutor(workload_error=RuntimeError('process failed'))
        with self.assertRaises(RuntimeError):
            await executor.execute(asyncio.Event())
        self.assertEqual(executor.status, RunStatus.FAILED)
        self.assertIn(('cleanup', 1), executor.calls)
        self.assertIn(('cleanup', 2), executor.calls)

    async def test_cancellation_before_execution(self, mock_notify):
        cancellation = asyncio.Event()
        cancellation.set()
        executor = RecordingExecutor()
        status = await executor.execute(cancellation)
        self.assertEqual(status, RunStatus.COMPLETED)
        self.assertNotIn('execute_workload', [c[0] for c in executor.calls])

    async def test_task_cancellation_completes_and_reraises(self, mock_notify):
        cancellation = asyncio.Event()
        executor = RecordingExecutor(workload_delay=10)
        task = asyncio.create_task(executor.execute(cancellation))
        await asyncio.sleep(0.05)
        task.cancel()
        with self.assertRaises(asyncio.CancelledError):
            await task
        self.assertEqual(executor.status, RunStatus.COMPLETED)
        self.assertTrue(cancellation.is_set())
        self.assertIn(('cleanup', 1), executor.calls)

    async def test_cleanup_errors_are_not_fatal(self, mock_notify):
        executor = RecordingExecutor()
        calls = []

        def broken():
            raise OSError('already gone')

        executor.cleanup_tasks.extend([broken, lambda: calls.append('after')])
        executor.run_cleanup_tasks()
        self.assertEqual(calls, ['after'])

    async def test_cleanup_runs_once(self, mock_notify):
        executor = RecordingExecutor()
        task = MagicMock()
        executor.cleanup_tasks.append(task)
        executor.run_cleanup_tasks()
        executor.run_cleanup_tasks()
        task.assert_called_once()

    async def test_exit_notifications_sent_on_teardown(self, mock_notify):
        executor = RecordingExecutor()
        client = MagicMock()
        executor.register_exit_notification('RecordingExecutor.ExitNotification', client)
        await executor.execute(asyncio.Event())
        mock_notify.assert_awaited_once_with('RecordingExecutor.ExitNotification', client)

    async def test_executor_runs_once(self, mock_notify):
        executor = RecordingExecutor()
        await executor.execute(asyncio.Event())
        with self.assertRaises(RuntimeError):
            await executor.execute(asyncio.Event())


if __name__ == '__main__':
    unittest.main()
