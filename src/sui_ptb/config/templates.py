"""
Command template store.

Templates are grouped by template name (the Move module they drive) and
operation name. Each operation is a FunctionDescriptor. The store is loaded
once and is read-only afterwards.

JSON layout::

    {
      "templates": {
        "offramp": {
          "execute": {
            "from_address": "0x...",
            "public_key": "hex",
            "prerequisite_objects": [{"match_tag": "...", "target_name": "..."}],
            "commands": [
              {"kind": "move_call",
               "target": {"package": "0x...", "module": "offramp", "function": "init_execute"},
               "params": [{"name": "ref", "type": "object_id", "required": true}]}
            ]
          }
        }
      }
    }
"""

import json
import logging
from pathlib import Path
from typing import Any, Mapping

from sui_ptb.config.settings import BuilderSettings
from sui_ptb.errors import ConfigNotFound
from sui_ptb.models import FunctionDescriptor

logger = logging.getLogger(__name__)


class TemplateStore:
    def __init__(self, templates: Mapping[str, Mapping[str, FunctionDescriptor]]):
        self._templates = {name: dict(ops) for name, ops in templates.items()}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TemplateStore":
        raw = data.get("templates", data)
        templates = {}
        for template_name, operations in raw.items():
            templates[template_name] = {
                op_name: FunctionDescriptor.from_dict(op_name, op) for op_name, op in operations.items()
            }
        logger.debug(f"Loaded {len(templates)} template(s)")
        return cls(templates)

    @classmethod
    def from_file(cls, path: str | Path) -> "TemplateStore":
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        logger.info(f"Loading PTB templates from {path}")
        return cls.from_dict(data)

    @classmethod
    def from_settings(cls, settings: BuilderSettings) -> "TemplateStore":
        """Load the template file named by PTB_TEMPLATES_PATH."""
        if not settings.templates_path:
            raise ConfigNotFound("PTB_TEMPLATES_PATH is not set")
        return cls.from_file(settings.templates_path)

    def get(self, template_name: str, operation_name: str) -> FunctionDescriptor:
        """
        Look up the descriptor of an operation.

        Raises:
            ConfigNotFound: If the template or the operation is unknown
        """
        operations = self._templates.get(template_name)
        if operations is None:
            raise ConfigNotFound(f"Unknown template: {template_name}")
        descriptor = operations.get(operation_name)
        if descriptor is None:
            raise ConfigNotFound(f"Unknown operation {operation_name} in template {template_name}")
        return descriptor

    def template_names(self) -> list[str]:
        return list(self._templates)

    def operation_names(self, template_name: str) -> list[str]:
        if template_name not in self._templates:
            raise ConfigNotFound(f"Unknown template: {template_name}")
        return list(self._templates[template_name])
