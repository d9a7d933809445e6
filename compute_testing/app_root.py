"""Resolution of the directory an application is started in."""

from pathlib import Path
from urllib.parse import urlparse
from urllib.request import url2pathname

from .errors import InvalidAppRootError


def resolve_app_root(app_root: str | Path) -> Path:
    """Resolve appRoot to an absolute directory.

    appRoot is either the directory to run the start command in or the path
    to a file in that directory, absolute or relative to the current working
    directory, given as a path or a file:// URL.
    """
    raw = str(app_root)
    if raw.startswith("file://"):
        parsed = urlparse(raw)
        path = Path(url2pathname(parsed.path))
    else:
        path = Path(raw)

    path = path.resolve()

    if path.is_dir():
        return path

    if not path.exists():
        raise InvalidAppRootError(raw, "does not exist")

    # A file inside the app directory
    parent = path.parent
    if not parent.is_dir():
        raise InvalidAppRootError(raw)
    return parent
