"""Built-in flow catalogue."""

from __future__ import annotations

from skuflow.engine.flows import FlowCatalog
from skuflow.flows.definitions import DEFAULT_FLOWS


def build_default_flows() -> FlowCatalog:
    """Catalogue with every built-in flow, ready for application flows to be added."""
    return FlowCatalog(DEFAULT_FLOWS)
