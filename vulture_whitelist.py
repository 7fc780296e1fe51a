# Vulture whitelist for intentionally unused names
# These are required by framework or interface signatures and cannot be removed

# Pydantic validators require 'cls' parameter
_.cls  # unused variable (Pydantic @classmethod validators)

# ConflictPolicy.check signature is shared by every policy; bypass ignores its inputs
_.actor  # unused variable (BypassPolicy / ResourceScopedPolicy.check)
_.existing  # unused variable (BypassPolicy.check)

# Read by callers and the UI layer, not inside the package
_.is_terminal  # unused property (Status)
_.to_record  # unused method (Appointment)
_.aggregate_counts  # unused property (PageResult)
_.QUICK_ACTION_LABELS  # unused variable (status quick action buttons)
_.DAY_NAMES  # unused variable (calendar column headers)
