"""Resolution of the class generated tests extend."""

from __future__ import annotations

import logging
import re

from src.shared.config import RenderConfig
from src.shared.utils import capitalize, convert_illegal_package_chars

logger = logging.getLogger(__name__)

_SEPARATOR = "_REPLACEME_"


class BaseClassResolver:
    """Picks the base class for the contracts of one directory.

    Precedence: the first ``base_class_mappings`` pattern matching the
    contract directory (as a dotted package), then a name derived from
    ``package_with_base_classes``, then ``base_class_for_tests``.
    """

    def resolve(self, config: RenderConfig, included_directory_relative_path: str) -> str | None:
        relative = included_directory_relative_path.replace("\\", "/").strip("/")
        as_package = relative.replace("/", ".")
        for pattern, base_class in config.base_class_mappings.items():
            if re.fullmatch(pattern, as_package):
                logger.debug(
                    "Matching pattern for contract package [%s] is [%s]", as_package, pattern
                )
                return base_class
        if not config.package_with_base_classes:
            return config.base_class_for_tests
        return self._default_base_class_name(
            relative.replace("/", _SEPARATOR), config.package_with_base_classes
        ) + "Base"

    @staticmethod
    def _default_base_class_name(contract_package: str, package_with_base_classes: str) -> str:
        parts = convert_illegal_package_chars(contract_package).split(_SEPARATOR)
        if len(parts) > 1:
            return f"{package_with_base_classes}.{capitalize(parts[-2])}{capitalize(parts[-1])}"
        return f"{package_with_base_classes}.{capitalize(parts[0])}"
