"""Find the strings.xml files of a module and classify them by locale."""

import logging
from pathlib import Path
from typing import List, Tuple

from .errors import BaselineNotFound, NoLocaleResources, ResourceDirectoryNotFound
from .resources import LocaleResource

logger = logging.getLogger(__name__)

RES_SUBPATH = Path('src') / 'main' / 'res'
VALUES_PREFIX = 'values'
STRINGS_FILENAME = 'strings.xml'
DEFAULT_LOCALE = 'default'


def get_res_dir(module_dir: Path) -> Path:
    """Get the resource directory of a module."""
    return Path(module_dir) / RES_SUBPATH


def locale_from_dirname(dirname: str) -> str:
    """Map a values folder name to its locale tag ('values-fr' -> 'fr')."""
    suffix = dirname[len(VALUES_PREFIX):]
    if suffix.startswith('-'):
        suffix = suffix[1:]
    return suffix or DEFAULT_LOCALE


def discover(module_dir: Path) -> List[LocaleResource]:
    """
    Load every values*/strings.xml of a module.

    Folders without a strings.xml are skipped. The result is sorted by folder
    name, but callers should only rely on it holding one resource per file.

    Raises:
        ResourceDirectoryNotFound: if the module has no src/main/res
        MalformedDocument: if one of the files cannot be parsed
    """
    res_dir = get_res_dir(module_dir)
    if not res_dir.is_dir():
        raise ResourceDirectoryNotFound(f'Resource directory not found: {res_dir}')

    resources = []
    for values_dir in sorted(res_dir.iterdir()):
        if not values_dir.is_dir() or not values_dir.name.startswith(VALUES_PREFIX):
            continue

        strings_file = values_dir / STRINGS_FILENAME
        if not strings_file.is_file():
            continue

        locale = locale_from_dirname(values_dir.name)
        resource = LocaleResource.load(locale, strings_file)
        logger.debug('Found %s (%s, %d strings)', strings_file, locale, len(resource.entries))
        resources.append(resource)

    return resources


def split_baseline(resources: List[LocaleResource]) -> Tuple[LocaleResource, List[LocaleResource]]:
    """Separate the default-locale resource from the ones to translate."""
    if not resources:
        raise NoLocaleResources(f'No {STRINGS_FILENAME} files found, nothing to translate')

    baselines = [r for r in resources if r.locale == DEFAULT_LOCALE]
    if not baselines:
        found = ', '.join(r.locale for r in resources)
        raise BaselineNotFound(f'No default {VALUES_PREFIX}/{STRINGS_FILENAME} (found: {found})')

    targets = [r for r in resources if r.locale != DEFAULT_LOCALE]
    return baselines[0], targets
