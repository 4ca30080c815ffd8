"""Mail delivery adapters.

Implementations support multiple transports:
- Stdout (terminal pretty-print)
- Outbox directory (.eml files)
- SMTP relay
"""
