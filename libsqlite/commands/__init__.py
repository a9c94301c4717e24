from .build import build
from .clean import clean
from .dev_path import dev_path
from .lib_path import lib_path
from .log import log
from .resolve import resolve
from .sync_version import sync_version
from .targets import targets
from .version import version
