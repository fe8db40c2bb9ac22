"""Liveness and readiness checks with cached executor health results."""