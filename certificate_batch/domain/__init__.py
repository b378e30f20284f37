"""Pure value objects for bulk mutation.  ZERO I/O."""
