"""Domain model of the Fragments service."""

from fragments.model.fragment import Fragment

__all__ = ["Fragment"]
