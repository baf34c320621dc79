"""
Template Registry

Loads the allow-list of Oneflow templates from templates.yml.
Each template is tagged with a document type ('contract' or 'offer').
Documents built from any template not listed here are skipped by
both the webhook and import paths.

Usage:
    registry = TemplateRegistry.load()
    if registry.is_allowed(detail.template_id):
        ...
"""

import logging
from functools import lru_cache
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Set

import yaml

from .exceptions import ConfigurationError
from .types import DOCUMENT_TYPES, TemplateDefinition

logger = logging.getLogger(__name__)

TEMPLATES_FILE = Path(__file__).parent / 'templates.yml'


class TemplateRegistry:
    """
    Read-only lookup of allow-listed templates, keyed by template id.
    """

    def __init__(self, templates: Iterable[TemplateDefinition]):
        self._templates: Dict[str, TemplateDefinition] = {}
        for template in templates:
            self._templates[template.template_id] = template

    @classmethod
    def load(cls, path: Path = TEMPLATES_FILE) -> 'TemplateRegistry':
        """
        Load and validate a registry file.

        Raises ConfigurationError listing every problem found.
        """
        try:
            raw = yaml.safe_load(Path(path).read_text(encoding='utf-8'))
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Could not read template registry {path}: {e}")

        if not raw or not raw.get('templates'):
            raise ConfigurationError(f"Template registry {path} defines no templates")

        errors = []
        templates = []
        seen: Set[str] = set()

        for index, entry in enumerate(raw['templates']):
            if not isinstance(entry, dict) or 'id' not in entry:
                errors.append(f"Entry {index}: missing 'id'")
                continue

            template_id = str(entry['id']).strip()
            if template_id in seen:
                errors.append(f"Entry {index}: duplicate template id '{template_id}'")
                continue
            if entry.get('type') not in DOCUMENT_TYPES:
                errors.append(
                    f"Template '{template_id}': type must be one of {list(DOCUMENT_TYPES)}, "
                    f"got {entry.get('type')!r}"
                )
                continue
            if not entry.get('name'):
                errors.append(f"Template '{template_id}': missing name")
                continue

            seen.add(template_id)
            templates.append(TemplateDefinition.from_dict(entry))

        if errors:
            error_msg = "Template registry errors:\n" + "\n".join(f"  - {e}" for e in errors)
            logger.error(error_msg)
            raise ConfigurationError(error_msg)

        logger.info(f"Loaded {len(templates)} allowed Oneflow template(s)")
        return cls(templates)

    @staticmethod
    def _key(template_id) -> Optional[str]:
        if template_id is None:
            return None
        return str(template_id).strip()

    def get(self, template_id) -> Optional[TemplateDefinition]:
        """Get a template definition, or None if not allow-listed."""
        return self._templates.get(self._key(template_id))

    def is_allowed(self, template_id) -> bool:
        """Check whether documents from this template may be synced."""
        return self.get(template_id) is not None

    def document_type_of(self, template_id) -> Optional[str]:
        """'contract', 'offer', or None for unknown templates."""
        template = self.get(template_id)
        return template.document_type if template else None

    def allowed_ids(self) -> Set[str]:
        return set(self._templates)

    def all(self) -> List[TemplateDefinition]:
        return list(self._templates.values())


@lru_cache(maxsize=1)
def get_default_registry() -> TemplateRegistry:
    """The registry bundled with the application, loaded once per process."""
    return TemplateRegistry.load()
