"""DAS indexing monitor and diagnostics."""

from frappeur.infrastructure.indexing.asset_diagnostics import AssetDiagnostics
from frappeur.infrastructure.indexing.indexing_monitor import (
    IndexingMonitor,
    MonitorEvent,
)

__all__ = ["AssetDiagnostics", "IndexingMonitor", "MonitorEvent"]
