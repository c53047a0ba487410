"""Sample landscape: a retail bank's reporting chain.

Source systems feed a layered warehouse (staging, data vault, mart)
that ends in a Power BI dashboard. Used for demos and empty canvases.
"""

import logging
from typing import Dict, List

from .models import System
from .store import FloraStore

logger = logging.getLogger(__name__)

# (name, type, description, (x, y), [(asset, asset_type, [(column, column_type)])])
BANK_SYSTEMS = (
    ("Core Banking (T24)", "Source System", "Main core banking system for accounts and customers.", (100, 100), [
        ("Customers", "Table", [("CustomerID", "INT"), ("Name", "VARCHAR")]),
        ("Accounts", "Table", [("AccountID", "INT"), ("Balance", "DECIMAL")]),
        ("Transactions", "Table", [("TxID", "INT"), ("Amount", "DECIMAL")]),
    ]),
    ("Payments Engine", "Source System", "Handles SEPA and SWIFT payments.", (100, 400), [
        ("PaymentOrders", "Table", [("OrderID", "INT"), ("Status", "VARCHAR")]),
    ]),
    ("DW Staging Area", "Data Warehouse", "Raw data landing zone.", (500, 250), [
        ("STG_Customers", "Table", []),
        ("STG_Accounts", "Table", []),
    ]),
    ("Data Vault", "Data Vault", "Raw Vault and Business Vault.", (900, 250), [
        ("Hub_Customer", "Table", []),
        ("Sat_Customer_Details", "Table", []),
        ("Link_Customer_Account", "Table", []),
    ]),
    ("Finance Mart", "Data Mart", "Dimensional models for Finance.", (1300, 100), [
        ("Dim_Customer", "View", []),
        ("Fact_Transactions", "View", []),
    ]),
    ("Executive Dashboard", "PBI Report", "Daily liquidity and risk overview.", (1700, 250), [
        ("Liquidity_Dataset", "Dataset", []),
    ]),
)

# (source system, source asset, target system, description)
BANK_INTEGRATIONS = (
    ("Core Banking (T24)", "Customers", "DW Staging Area", "Daily Batch Load"),
    ("DW Staging Area", "STG_Customers", "Data Vault", "Load Hubs and Sats"),
    ("Data Vault", "Hub_Customer", "Finance Mart", "Populate Dimensions"),
    ("Finance Mart", "Dim_Customer", "Executive Dashboard", "Power BI Import"),
)


def generate_bank_flora(store: FloraStore, owner_id: str) -> List[System]:
    """Add the sample bank systems and their integrations to ``store``."""
    created: Dict[str, System] = {}

    for name, system_type, description, (x, y), assets in BANK_SYSTEMS:
        created[name] = store.add_system(
            {
                "name": name,
                "type": system_type,
                "description": description,
                "position": {"x": x, "y": y},
                "assets": [
                    {
                        "name": asset_name,
                        "type": asset_type,
                        "status": "Existing",
                        "columns": [{"name": c, "type": t} for c, t in columns],
                    }
                    for asset_name, asset_type, columns in assets
                ],
            },
            owner_id,
        )

    for source_name, asset_name, target_name, description in BANK_INTEGRATIONS:
        source_asset = next(a for a in created[source_name].assets if a.name == asset_name)
        store.add_integration({
            "sourceAssetId": source_asset.id,
            "targetSystemId": created[target_name].id,
            "description": description,
        })

    logger.info(f"Generated sample bank landscape for {owner_id}")
    return list(created.values())
