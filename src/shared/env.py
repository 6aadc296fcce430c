"""Environment utilities for resolving secret files."""

from __future__ import annotations

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)

SECRET_FILE_SUFFIX = "_FILE"


def load_secret_file_variables() -> None:
    """
    Resolve environment variables that follow Docker secret conventions.

    For every KEY_FILE entry, read the referenced file and expose its
    contents via KEY, unless KEY is already set. Unreadable files are
    logged and skipped; e.g. DB_MONGO_URI_FILE fills DB_MONGO_URI.
    """

    for key, file_path in list(os.environ.items()):
        if not key.endswith(SECRET_FILE_SUFFIX) or not file_path:
            continue
        target_key = key[: -len(SECRET_FILE_SUFFIX)]
        if os.environ.get(target_key):
            continue
        try:
            os.environ[target_key] = Path(file_path).read_text(encoding="utf-8").strip()
        except FileNotFoundError as exc:
            logger.warning(
                "env.secret_file.missing",
                extra={"key": key, "path": file_path, "error": str(exc)},
            )
        except (UnicodeDecodeError, OSError) as exc:
            logger.warning(
                "env.secret_file.load_failed",
                extra={"key": key, "path": file_path, "error": str(exc)},
            )


# Ensure the util can be imported without manual invocation.
load_secret_file_variables()
