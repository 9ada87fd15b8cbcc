# Package initializer for the room calendar availability service.

"""
The `roomcal` package contains the room availability engine and the HTTP
service that exposes it.

Modules:

- ``models``: Pydantic models for calendars, events and availability responses.
- ``results``: success/failure values returned by engine operations.
- ``timegrid``: step rounding and timestamp parsing helpers.
- ``conflicts``: buffered overlap detection.
- ``opening_hours``: out-of-opening-hours detection.
- ``lead_time``: minimum/maximum booking horizon checks.
- ``calendar_ops``: copy-on-write event mutations and JSON import/export.
- ``slots``: free slot enumeration.
- ``availability``: availability probing and multi-room search.
- ``ics``: iCalendar export.
- ``interaction``: drag/resize gesture state for the admin grid.
- ``fixtures``: seed calendar loading.
- ``config``: application settings loaded from environment variables.
- ``main``: the FastAPI application definition.

"""
