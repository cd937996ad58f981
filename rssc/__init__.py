"""Redis Sentinel Service Controller (RSSC).

Long-running controller that keeps track of the current master of a Redis
Sentinel group and feeds every observed master address to a materializer:
 - active polling of `SENTINEL get-master-addr-by-name`
 - passive listening on the `+switch-master` notification channel
 - a single reconciler that applies both streams in arrival order

All state is in memory; restarting the process starts from a fresh query.
"""

__version__ = "0.1.0"
