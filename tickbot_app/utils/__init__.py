"""
Utility functions module.

Time helpers shared by the feed and the contract lifecycle. Tick epochs from
the gateway are authoritative; wall-clock time is only used to stamp local
events such as purchases.
"""
