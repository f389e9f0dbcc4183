"""
Database Models

This package defines the database models for the Authini service using SQLAlchemy ORM.

Key Models:
- base.py: Base SQLAlchemy model with common type definitions
- person.py: Person identity records
- client.py: Relying-party application records
- link.py: Person-application associations carrying a profile document
- session.py: Ephemeral broker sessions keyed by code or token

The data models follow these relationships:
- PersonAppLink references one Person and one Client, unique per pair
- Session is standalone; its payload embeds the client identifier, person id and profile

The models use SQLAlchemy's async interface for non-blocking database operations.
"""
