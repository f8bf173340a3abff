"""Project registry: data model, persistence and lookups."""

from .models import Profile, Project, Registry
from .publisher import GitPublisher
from .store import RegistryStore

__all__ = [
    "Profile",
    "Project",
    "Registry",
    "GitPublisher",
    "RegistryStore",
]
