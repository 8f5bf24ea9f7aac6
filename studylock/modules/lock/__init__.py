"""Client-side lock: overdue-task lock state, its timers and focus-break tracking."""
