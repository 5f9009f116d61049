import logging

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def get_logging_formatter(with_colors: bool) -> logging.Formatter:
    "Return a logging formatter with or without colors"
    if with_colors:
        return ColourFormatter()
    return logging.Formatter(
        fmt="[{asctime}] {levelname:<7} [{name}] {message}",
        datefmt=DATE_FORMAT, style='{'
    )


class ColourFormatter(logging.Formatter):
    "Color the level and logger name of each record, and print tracebacks in red"

    LEVEL_COLOURS = {
        logging.DEBUG: '\x1b[40;1m',
        logging.INFO: '\x1b[34;1m',
        logging.WARNING: '\x1b[33;1m',
        logging.ERROR: '\x1b[31m',
        logging.CRITICAL: '\x1b[41m',
    }

    def __init__(self):
        super().__init__(datefmt=DATE_FORMAT)
        self.formatters = {
            level: logging.Formatter(
                f'\x1b[30;1m%(asctime)s\x1b[0m {colour}%(levelname)-7s\x1b[0m \x1b[35m[%(name)s]\x1b[0m %(message)s',
                DATE_FORMAT,
            )
            for level, colour in self.LEVEL_COLOURS.items()
        }

    def format(self, record: logging.LogRecord):
        formatter = self.formatters.get(record.levelno, self.formatters[logging.DEBUG])
        if record.exc_info:
            record.exc_text = f'\x1b[31m{formatter.formatException(record.exc_info)}\x1b[0m'
        output = formatter.format(record)
        # don't let the colored traceback leak into other handlers
        record.exc_text = None
        return output
