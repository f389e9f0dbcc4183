"""
Authini - Authorization Session Broker

This package grants registered relying-party applications delegated, short-lived access to
a person's identity plus a small per-(person, application) profile payload. Access is
granted through a single-use authorization code that is exchanged for an opaque bearer
token, which is later redeemed for the profile payload.

Key Components:
- app: Web application layer (routing, administrative gate, CORS, logging)
- metrics: Backend-agnostic counters and timers shared by the app and the broker
- broker: Session broker, client registry, person-application link store and session store
- model: Database models for persons, clients, person-application links and sessions

Session Flow:
1. An administrative caller starts a session for a (person, client) pair and receives a code
2. The relying party exchanges the code for a token exactly once
3. The relying party redeems the token for the composed profile payload, as often as needed

All shared state lives in the relational store. Correctness of the code to token exchange
relies on a single conditional row update, not on in-process locking.
"""
