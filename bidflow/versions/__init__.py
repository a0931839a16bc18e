from .manager import VersionManager, diff, is_version_conflict, snapshot_total

__all__ = ["VersionManager", "diff", "is_version_conflict", "snapshot_total"]
