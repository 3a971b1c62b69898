"""Package manifest rewrite.

After the template tree is copied, the manifest still carries the
template's own name. The project name replaces it in the ``name`` field and
as a whole word in every script command.
"""

import json
import logging
import re
from pathlib import Path
from typing import Any

from stencil.foundation.errors import ManifestError, filesystem_error
from stencil.foundation.utils import atomic_write_json

logger = logging.getLogger(__name__)

_TEMPLATE_WORD = re.compile(r"\btemplate\b")


def rewrite_manifest_data(data: dict[str, Any], name: str) -> dict[str, Any]:
    """Return a copy of ``data`` renamed to ``name``.

    Only string script entries are rewritten; ``templates`` and other words
    containing "template" are left as they are.
    """
    updated = dict(data)
    updated["name"] = name

    scripts = data.get("scripts")
    if isinstance(scripts, dict):
        updated["scripts"] = {
            key: _TEMPLATE_WORD.sub(lambda _m: name, command) if isinstance(command, str) else command
            for key, command in scripts.items()
        }
    return updated


def rewrite_manifest(project_dir: Path, name: str, manifest: str = "package.json") -> bool:
    """Rewrite the manifest in ``project_dir`` in place, if there is one.

    Args:
        project_dir: Scaffolded project root.
        name: Project name to write into the manifest.
        manifest: Manifest path relative to ``project_dir``.

    Returns:
        True if a manifest was rewritten, False if none exists.

    Raises:
        ManifestError: If the manifest is not UTF-8 encoded JSON object text.
        StencilError: For any other I/O failure.
    """
    path = project_dir / manifest
    if not path.is_file():
        logger.debug("No manifest at %s, skipping rewrite", path)
        return False

    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise ManifestError(context={"name": name, "path": str(path), "detail": str(e)}, cause=e) from e
    except OSError as e:
        raise filesystem_error(name, str(path), e) from e

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ManifestError(context={"name": name, "path": str(path), "detail": str(e)}, cause=e) from e
    if not isinstance(data, dict):
        raise ManifestError(
            context={"name": name, "path": str(path), "detail": "top level is not an object"},
        )

    try:
        atomic_write_json(rewrite_manifest_data(data, name), path)
    except OSError as e:
        raise filesystem_error(name, str(path), e) from e

    logger.debug("Rewrote manifest %s for %s", path, name)
    return True
