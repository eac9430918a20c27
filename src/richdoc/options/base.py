"""Base classes for richdoc options.

This module defines the foundation classes for the frozen option objects
used by the editor, the markdown parser and the markdown serializer.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, fields, replace
from typing import Any, Mapping

if sys.version_info >= (3, 11):
    from typing import Self
else:
    from typing_extensions import Self


@dataclass(frozen=True)
class CloneFrozenMixin:
    """Mixin providing frozen dataclass cloning capabilities.

    This mixin adds the ability to create modified copies of frozen dataclass
    instances, which is useful for immutable configuration objects.
    """

    def create_updated(self, **kwargs: Any) -> Self:
        """Create a new instance with updated field values.

        Parameters
        ----------
        **kwargs : Any
            Field names and their new values

        Returns
        -------
        Self
            New instance with specified fields updated

        """
        return replace(self, **kwargs)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> Self:
        """Build an instance from a configuration mapping.

        Keys may use dashes or underscores. Unknown keys are rejected so that
        typos in configuration files surface instead of being ignored.

        Parameters
        ----------
        data : Mapping[str, Any]
            Configuration section for this options class

        Returns
        -------
        Self
            New options instance

        Raises
        ------
        ValueError
            If the mapping contains keys that are not fields of this class

        """
        known = {f.name for f in fields(cls)}  # type: ignore[arg-type]
        normalized = {str(key).replace("-", "_"): value for key, value in data.items()}
        unknown = sorted(set(normalized) - known)
        if unknown:
            raise ValueError(f"Unknown {cls.__name__} option(s): {', '.join(unknown)}")
        return cls(**normalized)
