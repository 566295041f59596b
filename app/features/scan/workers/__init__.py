"""Background workers for the scan feature (in-process asyncio tasks)."""
