"""
Staff roles and the groups of roles allowed into each area of the back office
"""

ROLES = (
    "admin",
    "ceo",
    "operations",
    "finance",
    "hr",
    "receptionist",
    "barista",
    "community_manager",
    "marketing",
    "crm",
)

# Management roles see everything
MANAGEMENT = ("admin", "ceo")

FRONT_DESK = MANAGEMENT + ("operations", "receptionist", "crm")
BAR = MANAGEMENT + ("operations", "barista", "receptionist")
STOCK_MANAGERS = MANAGEMENT + ("operations",)
STOCK_VIEWERS = STOCK_MANAGERS + ("barista",)
RECEIPT_VIEWERS = FRONT_DESK + ("finance",)
RECEIPT_CANCELLERS = MANAGEMENT + ("operations", "finance", "receptionist")
PLAN_MANAGERS = MANAGEMENT + ("operations",)
EVENT_MANAGERS = MANAGEMENT + ("operations", "community_manager", "marketing")
PAYROLL = MANAGEMENT + ("hr", "finance")
FINANCE = MANAGEMENT + ("finance",)
ANALYTICS = FINANCE + ("operations", "marketing")
AUTOMATION = MANAGEMENT + ("operations",)
