from prometheus_client import Counter, Histogram

uplinks_ingested_total = Counter('uplinks_ingested_total', 'Total number of uplinks stored in both series', ['device_id'])
uplink_ingest_duration = Histogram('uplink_ingest_duration_seconds', 'Time spent processing a webhook uplink')
uplink_validation_failures_total = Counter('uplink_validation_failures_total', 'Total number of uplinks rejected as malformed', ['reason'])
store_write_errors_total = Counter('store_write_errors_total', 'Total number of failed MongoDB inserts', ['series'])
orphaned_device_writes_total = Counter('orphaned_device_writes_total', 'Device-series entries left without a global-series counterpart')
