"""Make ``leadsearch`` importable from scripts run straight out of a checkout."""

from pathlib import Path
import os
import sys
from typing import Optional, Union

PathInput = Union[str, os.PathLike]


def bootstrap(script_location: Optional[PathInput] = None) -> Path:
    """Put ``backend/`` (and the calling script's folder) at the front of ``sys.path``.

    Parameters
    ----------
    script_location:
        ``__file__`` of the calling script. Python only adds the script's own
        folder to ``sys.path``, so ``import leadsearch`` fails for tools under
        ``backend/tools`` unless the package was installed.

    Returns
    -------
    Path
        The repository root.
    """
    backend_directory = Path(__file__).resolve().parent
    candidates = [backend_directory]
    if script_location is not None:
        script_path = Path(script_location).resolve()
        candidates.append(script_path if script_path.is_dir() else script_path.parent)

    for candidate in reversed(candidates):
        candidate_text = str(candidate)
        if candidate_text not in sys.path:
            sys.path.insert(0, candidate_text)

    return backend_directory.parent


__all__ = ["bootstrap"]
