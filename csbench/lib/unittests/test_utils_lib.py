import unittest
from unittest.mock import MagicMock, patch

import csbench.lib.utils_lib as utils_lib
from csbench.lib.process_lib import ProcessOutcome


class TestLogEvent(unittest.TestCase):
    def test_start_and_stop_records(self):
        logger = MagicMock()
        with utils_lib.log_event('Executor.ExecuteProcess', {'command': 'memcached'}, logger) as context:
            context['exitCode'] = 0
        messages = [c.args[0] for c in logger.info.call_args_list]
        self.assertEqual(messages, ['Executor.ExecuteProcessStart', 'Executor.ExecuteProcessStop'])
        stop_context = logger.info.call_args_list[1].kwargs['extra']['context']
        self.assertEqual(stop_context['exitCode'], 0)
        self.assertEqual(stop_context['command'], 'memcached')
        self.assertIn('elapsed', stop_context)

    def test_error_record_and_reraise(self):
        logger = MagicMock()
        with self.assertRaises(ValueError):
            with utils_lib.log_event('Executor.ExecuteProcess', {'command': 'memcached'}, logger):
                raise ValueError('bad')
        logger.error.assert_called_once()
        self.assertEqual(logger.error.call_args.args[0], 'Executor.ExecuteProcessError')
        self.assertIn('bad', logger.error.call_args.kwargs['extra']['context']['error'])


class TestReporting(unittest.TestCase):
    @patch('builtins.print')
    def test_fail_run_prints(self, mock_print):
        utils_lib.fail_run('something broke')
        mock_print.assert_called_once_with('FAIL - something broke')

    @patch('builtins.print')
    def test_print_process_output(self, mock_print):
        outcome = ProcessOutcome(exit_code=1, stdout='', stderr='Connection refused')
        utils_lib.print_process_output(outcome)
        printed = [c.args[0] for c in mock_print.call_args_list]
        self.assertIn('exit code = 1', printed)
        self.assertIn('Connection refused', printed)


if __name__ == '__main__':
    unittest.main()
