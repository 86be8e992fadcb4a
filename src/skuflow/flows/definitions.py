"""Inventory flows offered to clients by name.

Step options mirror the switches on the client's quick-select panel; a flow
only schedules the steps whose options are set in ``initialContext.options``.
The downstream task handlers are registered by the deployment, not here.
"""

from __future__ import annotations

from skuflow.models.flow import FlowDefinition

WAREHOUSE_LABELING = FlowDefinition.model_validate({
    "name": "warehouseLabeling",
    "description": "Import store products and switch on warehouse labeling",
    "stages": [
        {"name": "import store products",
         "steps": [{"task": "import_store_products", "when": ["importStore"]}]},
        {"name": "enable store products",
         "steps": [{"task": "enable_store_products", "when": ["useStore"]}]},
        # background import jobs need a moment before their results are queryable
        {"name": "wait for store import",
         "steps": [{"task": "wait", "when": ["importStore"]}]},
        {"name": "fetch csg numbers",
         "steps": [{"task": "get_csg", "when": ["importStore"]}]},
        {"name": "import logistics attributes",
         "steps": [{"task": "import_logistics_attributes", "when": ["importProps"]}]},
        {"name": "wait for logistics import",
         "steps": [{"task": "wait", "when": ["importProps"]}]},
        {"name": "enable inventory allocation",
         "steps": [{"task": "enable_inventory_allocation", "when": ["useMainData"]}]},
        {"name": "enable jp search",
         "steps": [{"task": "enable_jp_search", "when": ["useJPEffect"]}]},
    ],
})

RETURN_STORAGE = FlowDefinition.model_validate({
    "name": "returnStorage",
    "description": "Book returned goods back into storage",
    "stages": [
        {"name": "return storage", "steps": [{"task": "return_storage"}]},
    ],
})

STOCK_CLEARANCE = FlowDefinition.model_validate({
    "name": "stockClearance",
    "description": "Clear stock allocation and withdraw jp search",
    "stages": [
        {"name": "clear stock allocation",
         "steps": [{"task": "clear_stock_allocation", "when": ["clearStockAllocation"]}]},
        {"name": "cancel jp search",
         "steps": [{"task": "cancel_jp_search", "when": ["cancelJpSearch"]}]},
    ],
})

DEFAULT_FLOWS = (WAREHOUSE_LABELING, RETURN_STORAGE, STOCK_CLEARANCE)
