"""Repository layer for the notifier.

Provides the store-side halves of a notification pass:
- events: eligible_events_query, stream_eligible (eligibility resolver)
- processed: record_processed, get_processed_keys (blacklist recorder)
- leases: try_acquire, release (single-flight guard across passes)
"""
