import logging
import time
from typing import Iterable

from colorlog import ColoredFormatter


package_logger = 'schemaframe'

# debug chatter per area, `trace` in setup_logging turns these on one by one
trace_targets: dict[str, str] = {
    'rebuilds': 'schemaframe.table',
    'ingest': 'schemaframe.table.builder',
    'schema': 'schemaframe.schema',
    'stats': 'schemaframe.column',
    'matrix': 'schemaframe.matrix',
}


class UTCColoredFormatter(ColoredFormatter):
    '''
    Colored formatter with ISO8601 UTC timestamps ending in 'Z'.

    '''

    converter = time.gmtime

    def formatTime(self, record, datefmt=None):
        if datefmt:
            return super().formatTime(record, datefmt)

        t = time.strftime('%Y-%m-%dT%H:%M:%S', self.converter(record.created))
        return f'{t}Z'


class _PackageHandler(logging.StreamHandler):
    '''
    Marker type so `setup_logging` only ever replaces its own handler.

    '''


def setup_logging(
    loglevel: str = 'warning',
    *,
    trace: Iterable[str] = (),
    propagate: bool = False,
) -> logging.Logger:
    '''
    Attach a colored stream handler to the `schemaframe` logger and set its
    level. The root logger and any handler installed by the host application
    are left alone.

    `trace` names areas (see `trace_targets`) whose debug messages should
    pass regardless of `loglevel`, for example the row reorders done by
    `Table.sort_*` (`'rebuilds'`) or the sentinel upgrades during schema
    reconciliation (`'schema'`). Autobox failures are warnings so the default
    level shows them.

    '''
    traced = set(trace)
    unknown = traced - trace_targets.keys()
    if unknown:
        raise ValueError(f'Unknown trace areas {sorted(unknown)}')

    formatter = UTCColoredFormatter(
        '%(asctime)s %(log_color)s%(levelname)s%(reset)s %(name)s: %(message)s',
        log_colors={
            'DEBUG': 'cyan',
            'INFO': 'green',
            'WARNING': 'yellow',
            'ERROR': 'red',
            'CRITICAL': 'bold_red',
        },
    )

    logger = logging.getLogger(package_logger)
    logger.handlers = [
        h for h in logger.handlers if not isinstance(h, _PackageHandler)
    ]
    handler = _PackageHandler()
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    logger.setLevel(loglevel.upper())
    logger.propagate = propagate

    # areas are nested ('table' holds 'table.builder'), pin each explicitly
    for area, name in trace_targets.items():
        level = logging.DEBUG if area in traced else logger.level
        logging.getLogger(name).setLevel(level)

    return logger
