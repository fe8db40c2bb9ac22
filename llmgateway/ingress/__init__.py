"""Ingress: validation, orchestration and HTTP handling of AI routing requests."""