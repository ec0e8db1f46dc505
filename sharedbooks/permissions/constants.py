"""
SharedBooks Permissions - Capability Keys
=========================================
Every capability a membership can hold. The role matrix must define a
value for each of these for each role.
"""

# ── Business management ──────────────────────────────────────
CAN_UPDATE_BUSINESS = "can_update_business"
CAN_ARCHIVE_BUSINESS = "can_archive_business"
CAN_DELETE_BUSINESS = "can_delete_business"

# ── Member management ────────────────────────────────────────
CAN_INVITE_MEMBERS = "can_invite_members"
CAN_REMOVE_MEMBERS = "can_remove_members"
CAN_CHANGE_ROLES = "can_change_roles"
CAN_CHANGE_PERMISSIONS = "can_change_permissions"

# ── Categories ───────────────────────────────────────────────
CAN_MANAGE_CATEGORIES = "can_manage_categories"

# ── Expenses ─────────────────────────────────────────────────
CAN_CREATE_EXPENSE = "can_create_expense"
CAN_VIEW_ALL_EXPENSES = "can_view_all_expenses"
CAN_VIEW_OWN_EXPENSES = "can_view_own_expenses"
CAN_EDIT_ANY_EXPENSE = "can_edit_any_expense"
CAN_DELETE_EXPENSE = "can_delete_expense"

# ── Income ───────────────────────────────────────────────────
CAN_CREATE_INCOME = "can_create_income"
CAN_VIEW_ALL_INCOMES = "can_view_all_incomes"
CAN_VIEW_OWN_INCOMES = "can_view_own_incomes"
CAN_EDIT_ANY_INCOME = "can_edit_any_income"
CAN_DELETE_INCOME = "can_delete_income"

# ── Settlements ──────────────────────────────────────────────
CAN_CREATE_SETTLEMENT = "can_create_settlement"
CAN_VIEW_SETTLEMENTS = "can_view_settlements"

# ── Analytics ────────────────────────────────────────────────
CAN_VIEW_FULL_ANALYTICS = "can_view_full_analytics"
CAN_VIEW_OWN_ANALYTICS = "can_view_own_analytics"
CAN_EXPORT_DATA = "can_export_data"

# ── Audit / salary ───────────────────────────────────────────
CAN_VIEW_AUDIT_LOG = "can_view_audit_log"
CAN_VIEW_SALARY_INFO = "can_view_salary_info"

CAPABILITIES = (
    CAN_UPDATE_BUSINESS,
    CAN_ARCHIVE_BUSINESS,
    CAN_DELETE_BUSINESS,
    CAN_INVITE_MEMBERS,
    CAN_REMOVE_MEMBERS,
    CAN_CHANGE_ROLES,
    CAN_CHANGE_PERMISSIONS,
    CAN_MANAGE_CATEGORIES,
    CAN_CREATE_EXPENSE,
    CAN_VIEW_ALL_EXPENSES,
    CAN_VIEW_OWN_EXPENSES,
    CAN_EDIT_ANY_EXPENSE,
    CAN_DELETE_EXPENSE,
    CAN_CREATE_INCOME,
    CAN_VIEW_ALL_INCOMES,
    CAN_VIEW_OWN_INCOMES,
    CAN_EDIT_ANY_INCOME,
    CAN_DELETE_INCOME,
    CAN_CREATE_SETTLEMENT,
    CAN_VIEW_SETTLEMENTS,
    CAN_VIEW_FULL_ANALYTICS,
    CAN_VIEW_OWN_ANALYTICS,
    CAN_EXPORT_DATA,
    CAN_VIEW_AUDIT_LOG,
    CAN_VIEW_SALARY_INFO,
)

VALID_CAPABILITIES = frozenset(CAPABILITIES)
