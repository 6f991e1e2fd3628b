import logging
import sys

from billmanager.settings import settings

TEXT_FORMAT = "%(levelname)s %(name)s: %(message)s"
JSON_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

# Third-party loggers that report every HTTP connection made for a package download.
QUIET_LOGGERS = ("urllib3", "requests")


def _formatter(json_output: bool) -> logging.Formatter:
    if not json_output:
        return logging.Formatter(TEXT_FORMAT)

    from pythonjsonlogger.json import JsonFormatter

    return JsonFormatter(
        fmt=JSON_FORMAT,
        rename_fields={"asctime": "timestamp", "levelname": "level", "name": "logger"},
        static_fields={"app": "billmanager"},
    )


def configure_logging(level: str | None = None, *, json_output: bool | None = None) -> None:
    """Send billmanager logs to stderr.

    ``level`` and ``json_output`` override ``settings.log_level`` and
    ``settings.log_json``; the render script uses them for its command line flags.
    """
    level_name = (level or settings.log_level).upper()
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(_formatter(settings.log_json if json_output is None else json_output))

    root = logging.getLogger()
    root.setLevel(getattr(logging, level_name, logging.INFO))
    root.handlers.clear()
    root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
