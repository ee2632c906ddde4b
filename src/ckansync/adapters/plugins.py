"""Load format parsers and the item post-processor from disk or import paths.

A parser is any module in the parsers directory exposing ``parse(raw)``; the
module's file stem names the format it handles (``csv.py`` handles ``CSV``
resources). The post-processor is a ``.py`` file or a dotted module path
exposing ``process(item)``.
"""

from __future__ import annotations

import importlib
import importlib.util
import sys
from logging import getLogger
from pathlib import Path
from typing import TYPE_CHECKING, cast

from ckansync.config.errors import PluginLoadError
from ckansync.domain.ports.plugins import FormatParser, ItemPostProcessor, ParserRegistry

if TYPE_CHECKING:
    from types import ModuleType

log = getLogger(__name__)

_MODULE_PREFIX = "ckansync_plugins"


def load_parser_registry(directory: str | Path | None) -> ParserRegistry:
    """Import every parser module in ``directory`` into a registry."""

    registry = ParserRegistry()
    if directory is None:
        return registry

    parsers_dir = Path(directory)
    if not parsers_dir.is_dir():
        raise PluginLoadError(f"Parser directory not found: {parsers_dir}")

    for path in sorted(parsers_dir.glob("*.py")):
        if path.name.startswith((".", "_")):
            continue
        module = _import_file(path, f"{_MODULE_PREFIX}.parsers.{path.stem}")
        if not isinstance(module, FormatParser):
            raise PluginLoadError(f"Parser module {path} does not define parse(raw)")
        registry.register(path.stem, cast(FormatParser, module))
        log.info("Registered parser for format %r", path.stem)

    return registry


def load_post_processor(target: str | None) -> ItemPostProcessor | None:
    """Load the post-processor from a file path or a dotted module path."""

    if not target:
        return None

    if target.endswith(".py") or Path(target).is_file():
        path = Path(target)
        if not path.is_file():
            raise PluginLoadError(f"Post-processor file not found: {path}")
        module = _import_file(path, f"{_MODULE_PREFIX}.post_processor")
    else:
        try:
            module = importlib.import_module(target)
        except ImportError as exc:
            raise PluginLoadError(f"Unable to import post-processor module '{target}'") from exc

    if not isinstance(module, ItemPostProcessor):
        raise PluginLoadError(f"Post-processor '{target}' does not define process(item)")
    return cast(ItemPostProcessor, module)


def _import_file(path: Path, module_name: str) -> ModuleType:
    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        raise PluginLoadError(f"Unable to load plugin from {path}")
    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except Exception as exc:  # noqa: BLE001
        sys.modules.pop(module_name, None)
        raise PluginLoadError(f"Plugin {path} failed to import: {exc}") from exc
    return module
