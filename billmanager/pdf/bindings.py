import functools
import logging
from types import ModuleType

logger = logging.getLogger(__name__)


@functools.cache
def typst_library() -> ModuleType:
    """Import the Typst bindings once per process."""
    import typst

    logger.debug("Loaded typst bindings from %s", getattr(typst, "__file__", "?"))
    return typst
