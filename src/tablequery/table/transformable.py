"""
Parameter store shared by queries and tables.
"""

from typing import Any, Dict, Mapping, Optional


class Transformable:
    """
    Base class for objects that carry table expression parameters.

    Parameters are a mapping of name to value; ``None`` means no
    parameters were ever set. Subclasses decide whether a merge mutates
    the instance (``Query``) or produces a new one (``Table``).

    ::: This is-in-layer Domain-Layer.
    ::: This is a parameter-store.
    """

    def __init__(self, params: Optional[Mapping[str, Any]] = None):
        self._params: Optional[Dict[str, Any]] = dict(params) if params is not None else None

    def get_params(self) -> Optional[Dict[str, Any]]:
        """Return the current parameter mapping, or None if never set."""
        return self._params

    def _merged(self, values: Optional[Mapping[str, Any]]) -> Optional[Dict[str, Any]]:
        """Return current params with ``values`` merged over them."""
        if values is None:
            return self._params
        return {**(self._params or {}), **values}
