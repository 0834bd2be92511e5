"""The daybook package: a day-grouped task list service over an ordered key-value store."""
