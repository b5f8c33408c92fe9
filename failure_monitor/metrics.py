from prometheus_client import Counter

WEBHOOK_EVENTS = Counter(
    "webhook_events_total",
    "Stripe webhook deliveries handled by the intake endpoint",
    ["outcome"],  # processed | ignored | rejected
)

SINK_DELIVERIES = Counter(
    "sink_deliveries_total",
    "Failed-payment deliveries attempted per sink",
    ["sink", "outcome"],  # sink: alert | record; outcome: success | failed
)
