"""
coursegate: module progression gating, assessment scoring and proctoring.

Subpackages:
- gating: module graph and the access gate
- scoring: answer keys and quiz scoring
- proctoring: integrity monitor, lockout policy, attempt countdown
- telemetry: fire-and-forget event transport and engagement heartbeat
- progress: local-first progress store with background reconciliation

Backend adapters (HTTP, SQL) live in `infra`; the service lives in `api`.
"""

__version__ = "0.1.0"
