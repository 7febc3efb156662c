"""Leave Insights — leave-year balances and sandwich-leave reporting."""
