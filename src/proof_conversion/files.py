"""
Reading inputs and writing outputs
"""

import errno
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from .types import ConversionIOError, FormatError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def read_bytes(path: PathLike, field: str) -> bytes:
    try:
        return Path(path).read_bytes()
    except OSError as e:
        raise ConversionIOError(f"cannot read {path}: {e.strerror or e}", stage="read", field=field) from e


def read_json(path: PathLike, field: str) -> Any:
    data = read_bytes(path, field)
    try:
        return json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise FormatError(f"{path} is not valid JSON: {e}", stage="read", field=field) from e


def dumps(document: Dict[str, Any]) -> str:
    return json.dumps(document, indent=2) + "\n"


def _stage(target: Path, suffix: str) -> str:
    fd, tmp = tempfile.mkstemp(prefix=f".{target.name}.", suffix=suffix, dir=target.parent)
    os.close(fd)
    return tmp


def _roll_back(replaced: List[Tuple[Path, Optional[str]]]) -> None:
    for target, backup in reversed(replaced):
        try:
            if backup is not None:
                os.replace(backup, target)
            elif target.exists():
                target.unlink()
        except OSError as e:
            logger.error("could not restore %s: %s", target, e)


def write_atomically(outputs: Dict[PathLike, str]) -> None:
    """
    Write every output or none of them.

    Each document goes to a temporary file beside its destination first. The
    temporaries are renamed into place only once all of them were written and
    no destination is a directory. A destination that already existed is moved
    aside and restored if a later rename fails; one that did not is removed.
    """
    staged: List[Tuple[str, Path]] = []
    replaced: List[Tuple[Path, Optional[str]]] = []
    try:
        for path, text in outputs.items():
            target = Path(path)
            tmp = _stage(target, ".tmp")
            staged.append((tmp, target))
            with open(tmp, "w", encoding="utf-8") as f:
                f.write(text)
        for _, target in staged:
            if target.is_dir():
                raise IsADirectoryError(errno.EISDIR, os.strerror(errno.EISDIR), str(target))
        for tmp, target in staged:
            backup = None
            if target.exists():
                backup = _stage(target, ".bak")
                try:
                    os.replace(target, backup)
                except OSError:
                    os.unlink(backup)
                    raise
            replaced.append((target, backup))
            os.replace(tmp, target)
            logger.debug("wrote %s", target)
    except OSError as e:
        _roll_back(replaced)
        for tmp, _ in staged:
            if os.path.exists(tmp):
                os.unlink(tmp)
        raise ConversionIOError(f"cannot write output: {e}", stage="write", field=getattr(e, "filename", None)) from e
    for _, backup in replaced:
        if backup is not None:
            os.unlink(backup)
