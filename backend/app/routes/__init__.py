# All application routes are in v1/; /metrics is mounted from v1.prometheus
