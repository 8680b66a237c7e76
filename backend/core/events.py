# core/events.py — canonical event type definitions
# All cross-module communication should use these constants as event_type values.

# Work order events (relayed to /ws clients)
WORK_ORDER_CREATED = "work_order.created"             # {work_order_id}
WORK_ORDER_UPDATED = "work_order.updated"             # {work_order_id, fields}
WORK_ORDER_DELETED = "work_order.deleted"             # {work_order_id}

# Line item events
JOB_LINE_CHANGED = "job_line.changed"                 # {work_order_id, job_line_id, action}
PART_CHANGED = "part.changed"                         # {work_order_id, part_id, action}

# Email marketing events
CAMPAIGN_TRIGGERED = "email.campaign_triggered"       # {campaign_id}
SEQUENCE_PROCESSED = "email.sequence_processed"       # {sequence_id, enrollment_id}

# System events
HEALTH_CHANGED = "system.health_changed"              # {status, previous}

# Prefix relayed over the realtime feed
REALTIME_PREFIX = "work_order."
