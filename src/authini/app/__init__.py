"""
Authini Application Layer

This package implements the web application layer (the gateway in front of the session
broker), handling HTTP requests and responses using the aiohttp framework.

Key Components:
- cli.py: Entry point for running the application
- server.py: Web server configuration, middleware setup and route table
- config.py: Configuration management using Pydantic settings
- handlers/: Request handlers for sessions, clients, links and health checks
- cors.py: CORS handling for cross-origin requests
- metrics.py: Metrics abstraction (Telegraf/StatsD or disabled)
- util/: Administrative command line utilities

The application uses several middleware layers:
- Request logging middleware
- CORS middleware for handling cross-origin requests
- Statsd middleware for metrics collection
- Error middleware rendering failures as JSON and reporting them to Sentry

Administrative routes are gated by a shared static bearer credential. The code and token
exchange routes are unauthenticated; the code and token are themselves the credential.
"""
