'''
Copyright 2025 Advanced Micro Devices, Inc.
All rights reserved. This notice is intended as a precaution against inadvertent publication and does not imply publication or any waiver of confidentiality.
The year included in the foregoing notice is the year of creation of the work.
All code contained here is Property of Advanced Micro Devices, Inc.
'''

import time
import logging
from contextlib import contextmanager

log = logging.getLogger(__name__)


def fail_run(msg):
    """
    Report a run failure on the console and in the log.

    Prints a standardized "FAIL - ..." message to stdout for quick visibility
    and logs the same message at error level.
    """
    print('FAIL - {}'.format(msg))
    log.error('FAIL - {}'.format(msg))


def print_process_output(outcome):
    print('#========================================================#')
    print('\t\t ** Process Output **')
    print('#========================================================#')
    print(f'exit code = {outcome.exit_code}')
    if outcome.stdout:
        print(outcome.stdout)
    if outcome.stderr:
        print(outcome.stderr)


@contextmanager
def log_event(name, context, logger=None):
    """
    Log a structured event around a block of work.

    Emits '<name>Start' before the block and '<name>Stop' after it, or
    '<name>Error' when the block raises. The context dictionary is attached to
    each record (as record.context) and may be extended inside the block, e.g.
    with the process outcome, before the closing record is written.

    Usage:
        with log_event('MemcachedExecutor.ExecuteProcess', {'command': cmd}) as ctx:
            ...
            ctx['exitCode'] = 0
    """
    logger = logger or log
    start = time.monotonic()
    logger.info(f'{name}Start', extra={'context': dict(context)})
    try:
        yield context
    except BaseException as e:
        context['elapsed'] = round(time.monotonic() - start, 3)
        context['error'] = f'{type(e).__name__}: {e}'
        logger.error(f'{name}Error', extra={'context': dict(context)})
        raise
    context['elapsed'] = round(time.monotonic() - start, 3)
    logger.info(f'{name}Stop', extra={'context': dict(context)})
