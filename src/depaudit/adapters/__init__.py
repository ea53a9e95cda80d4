"""Registry adapters and graph resolution."""

from depaudit.adapters.base import BaseFetcher
from depaudit.adapters.cargo import CargoResolver
from depaudit.adapters.crates_io import CratesIoAdapter

__all__ = ["BaseFetcher", "CargoResolver", "CratesIoAdapter"]
