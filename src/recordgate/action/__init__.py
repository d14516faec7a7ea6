# recordgate/action/__init__.py
"""Action base class, parameter plans and the dispatch strategy."""

from recordgate.action.base import Action
from recordgate.action.params import Source, bind
from recordgate.action.strategy import ActionStrategy

__all__ = ["Action", "ActionStrategy", "Source", "bind"]
