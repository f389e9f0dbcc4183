"""
Authorization Session Broker

Code issuance, atomic single-use code to token exchange and token-gated payload
retrieval, together with the stores they depend on.

Key Components:
- service.py: SessionBroker orchestrating start, redeem and fetch
- sessions.py: Session Store and the local session issuer
- relay.py: Relay session issuer forwarding session start to a remote service
- registry.py: Client Registry with secret rotation
- links.py: Person-Application Link Store and profile parsing
- persons.py: Person lookups
- credentials.py: Cryptographically secure code, secret and token generation
- errors.py: Error taxonomy mapped to HTTP statuses
- storage.py: Per-request transaction scoping
"""
