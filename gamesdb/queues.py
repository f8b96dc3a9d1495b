"""Queue definitions and priority constants for Procrastinate task queue."""

# Queue names - tasks are routed to specific queues based on their nature
QUEUE_USER_ACTIONS = "user_actions"  # User-initiated update, expecting progress soon
QUEUE_BACKGROUND = "background"  # Scheduled update checks and imports, can wait

# All queues for worker startup
ALL_QUEUES = [QUEUE_USER_ACTIONS, QUEUE_BACKGROUND]

# Priority levels (higher number = processed first)
# Within a queue, jobs are ordered by priority DESC, then created_at ASC
PRIORITY_HIGH = 75  # User asked for the update
PRIORITY_LOW = 25  # Scheduled update
